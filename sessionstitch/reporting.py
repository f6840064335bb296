"""Plain-text renderings for listings, split reports and merge plans."""
from __future__ import annotations

import shlex
from itertools import groupby

from sessionstitch.models import BulkMergeReport, FragmentSummary, MergePlan, MergeResult, SplitGroup
from sessionstitch.stitching import order_summaries

PROG = "session-stitch"


def human_size(num_bytes: int) -> str:
    """Size in the style of ``du -h``."""
    size = float(max(0, num_bytes))
    for unit in ("B", "K", "M", "G"):
        if size < 1024 or unit == "G":
            return f"{int(size)}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}G"


def short_timestamp(value: str) -> str:
    return (value or "?")[:16]


def decode_project_name(name: str) -> str:
    return name.replace("-", "/")


def merge_command(group: SplitGroup) -> str:
    ids = " ".join(group.session_ids)
    return f"{PROG} merge --name {shlex.quote(group.slug)} --delete-sources {ids}"


def render_listing(summaries: list[FragmentSummary]) -> str:
    lines = ["Claude Code Sessions", "=" * 25, ""]
    for project, members in groupby(summaries, key=lambda s: s.project):
        members = list(members)
        lines.append(f"Project: {decode_project_name(project)} ({len(members)} sessions)")
        lines.append("---")
        for s in members:
            lines.append(
                f"  {(s.slug or s.sessionId):<40} {human_size(s.sizeBytes):>6}  {s.lineCount:5d} lines  "
                f"{short_timestamp(s.firstTimestamp)} -> {short_timestamp(s.lastTimestamp)}"
            )
            lines.append(f"    ID: {s.sessionId}")
            if s.firstUserMessage:
                lines.append(f"    First msg: {s.firstUserMessage}")
            lines.append("")
    lines.append(f"Total: {len(summaries)} sessions")
    return "\n".join(lines)


def render_split_report(groups: list[SplitGroup]) -> str:
    if not groups:
        return "No split sessions found! All session slugs are unique."

    total = sum(len(g.members) for g in groups)
    lines = [f"Found {len(groups)} split session groups:", "=" * 42, ""]
    for group in groups:
        count = len(group.members)
        lines.append(f"Slug: {group.slug}")
        lines.append(f"Sessions in this group: {count}")
        lines.append("")
        for idx, s in enumerate(group.members, start=1):
            lines.append(f"  [{idx}/{count}] {s.sessionId}")
            lines.append(f"      Project: {s.project}")
            lines.append(f"      Size: {human_size(s.sizeBytes)} ({s.lineCount} lines)")
            lines.append(
                f"      Date range: {short_timestamp(s.firstTimestamp)} -> {short_timestamp(s.lastTimestamp)}"
            )
            if s.firstUserMessage:
                lines.append(f"      First msg: {s.firstUserMessage}")
            lines.append("")
        lines.append("  Merge command:")
        lines.append(f"    {merge_command(group)}")
        lines.append("")

    lines.extend([
        "Summary",
        "--------",
        f"Found {len(groups)} split session groups ({total} total sessions that could be merged)",
        "",
        "To merge all splits at once, run:",
        f"  {PROG} merge-splits",
    ])
    return "\n".join(lines)


def render_bulk_preview(groups: list[SplitGroup], target_project: str) -> str:
    total = sum(len(g.members) for g in groups)
    lines = [f"Split sessions found ({len(groups)} groups):", ""]
    for idx, group in enumerate(groups, start=1):
        lines.append(f"  [{idx}/{len(groups)}] {group.slug}: {len(group.members)} sessions")
    lines.append("")
    lines.append(f"Target project: {target_project}")
    lines.append(
        f"This will create {len(groups)} merged session(s) and delete {total} original sessions."
    )
    return "\n".join(lines)


def render_merge_plan(plan: MergePlan) -> str:
    lines = ["Session Merge Plan", "=" * 25, "", "Source sessions (merge order):"]
    for s in order_summaries(plan.sources):
        lines.append(f"  {s.sessionId}")
        if s.slug:
            lines.append(f"    Name: {s.slug}")
        lines.append(f"    Size: {human_size(s.sizeBytes)} ({s.lineCount} lines)")
        lines.append(f"    Project: {s.project}")
        lines.append(f"    Starts: {short_timestamp(s.earliestTimestamp or s.firstTimestamp)}")
    lines.append("")
    lines.append(f"Merged session ID: {plan.outputId}")
    if plan.name:
        lines.append(f"Merged session name: {plan.name}")
    lines.append(f"Target project: {plan.targetProject}")
    lines.append(f"Delete sources: {str(plan.deleteSources).lower()}")
    return "\n".join(lines)


def render_merge_result(result: MergeResult) -> str:
    lines = [
        "Merge complete!",
        f"  File: {result.path}",
        f"  Size: {human_size(result.sizeBytes)} ({result.recordCount} lines)",
        f"  Session ID: {result.sessionId}",
    ]
    if result.name:
        lines.append(f"  Name: {result.name}")
    if result.splices:
        lines.append(f"  Stitched boundaries: {len(result.splices)}")
    if result.copiedSidecars:
        lines.append(f"  Side files copied: {len(result.copiedSidecars)}")
    if result.deletedSources:
        lines.append(f"  Deleted sources: {', '.join(result.deletedSources)}")
    for warning in result.deletionWarnings:
        lines.append(f"  Warning: {warning}")
    lines.append("")
    lines.append("Resume with: claude --resume (and pick the merged session)")
    if result.name:
        lines.append(f"Or directly: claude --resume {shlex.quote(result.name)}")
    return "\n".join(lines)


def render_bulk_report(report: BulkMergeReport) -> str:
    lines = []
    for result in report.merged:
        lines.append(
            f"Merged {result.name}: {human_size(result.sizeBytes)} ({result.recordCount} lines) -> {result.sessionId}"
        )
    for slug, error in report.failures.items():
        lines.append(f"FAILED {slug}: {error}")
    lines.append("")
    if report.ok:
        lines.append("All splits merged successfully!")
    else:
        lines.append(f"{len(report.merged)} group(s) merged, {len(report.failures)} failed.")
    return "\n".join(lines)
