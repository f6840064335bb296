"""Merge pipeline: plan -> load -> stitch -> write -> side files -> index -> delete.

Source files are only read until the merged file has been written,
renamed into place and re-read for verification. ``MergePipeline`` refuses to
run its delete stage before that point.
"""
from __future__ import annotations

import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

from sessionstitch.corpus import Corpus, is_session_id
from sessionstitch.errors import (
    MergeWriteError,
    OutputCollisionError,
    PipelineOrderError,
    SessionStitchError,
    TooFewFragmentsError,
)
from sessionstitch.merging import merge_records
from sessionstitch.models import BulkMergeReport, Fragment, MergePlan, MergeResult, SplitGroup, StitchPlan
from sessionstitch.observability import record_merge, start_span
from sessionstitch.parsers.records import read_fragment, serialize_entry
from sessionstitch.parsers.summaries import summarize_fragment
from sessionstitch.session_index import build_index_entry, update_session_index
from sessionstitch.stitching import plan_stitch

logger = logging.getLogger("sessionstitch")


# ── Planning ───────────────────────────────────────────────────────

def plan_merge_paths(
    paths: list[Path],
    *,
    name: str = "",
    output_id: str | None = None,
    delete_sources: bool = False,
    target_project: Path | None = None,
) -> MergePlan:
    """Validate inputs and describe a merge without reading any records.

    Raises a SessionStitchError subclass for anything that would make the
    merge unsafe; nothing on disk has been touched at that point.
    """
    if len(paths) < 2:
        raise TooFewFragmentsError(len(paths))

    ids = [path.stem for path in paths]
    duplicates = sorted({sid for sid in ids if ids.count(sid) > 1})
    if duplicates:
        raise SessionStitchError(f"Session(s) listed more than once: {', '.join(duplicates)}")

    new_id = (output_id or "").strip() or str(uuid.uuid4())
    if not is_session_id(new_id):
        raise SessionStitchError(f"Output id {new_id!r} is not a lowercase UUID")
    if new_id in ids:
        raise OutputCollisionError(f"Output id {new_id} is one of the sessions being merged")

    target = target_project or paths[0].parent
    output_path = target / f"{new_id}.jsonl"
    if output_path.exists() or (target / new_id).exists():
        raise OutputCollisionError(f"Session {new_id} already exists in {target}")

    return MergePlan(
        sources=[summarize_fragment(path, path.parent.name) for path in paths],
        outputId=new_id,
        name=name.strip(),
        targetProject=str(target),
        outputPath=str(output_path),
        deleteSources=delete_sources,
    )


def plan_merge(
    corpus: Corpus,
    session_ids: list[str],
    *,
    name: str = "",
    output_id: str | None = None,
    delete_sources: bool = False,
) -> MergePlan:
    """Plan a merge of explicit session ids into the first session's project."""
    if len(session_ids) < 2:
        raise TooFewFragmentsError(len(session_ids))
    return plan_merge_paths(
        corpus.locate(session_ids),
        name=name,
        output_id=output_id,
        delete_sources=delete_sources,
    )


# ── Execution ──────────────────────────────────────────────────────

class MergePipeline:
    """Runs one MergePlan through its stages in order."""

    def __init__(self, corpus: Corpus, plan: MergePlan):
        self.corpus = corpus
        self.plan = plan
        self.source_paths = [Path(s.path) for s in plan.sources]
        self.output_path = Path(plan.outputPath)
        self.target_project = Path(plan.targetProject)
        self._written_records: int | None = None

    @property
    def write_confirmed(self) -> bool:
        return self._written_records is not None

    def load(self) -> list[Fragment]:
        return [read_fragment(path, path.stem) for path in self.source_paths]

    def stitch(self, fragments: list[Fragment]) -> tuple[list[Fragment], StitchPlan]:
        return plan_stitch(fragments)

    def write(self, entries: list[dict[str, Any]]) -> None:
        """Write to a temp file, rename into place, then re-count the lines."""
        if self.output_path.exists():
            raise OutputCollisionError(f"{self.output_path} appeared while merging")
        self.target_project.mkdir(parents=True, exist_ok=True)
        tmp_path = self.output_path.with_name(f".{self.output_path.name}.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                for entry in entries:
                    handle.write(serialize_entry(entry))
                    handle.write("\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.output_path)
        except Exception as exc:
            tmp_path.unlink(missing_ok=True)
            raise MergeWriteError(f"Failed to write {self.output_path}: {exc}") from exc

        with self.output_path.open("r", encoding="utf-8") as handle:
            written = sum(1 for line in handle if line.strip())
        if written != len(entries):
            raise MergeWriteError(
                f"Verification failed for {self.output_path}: expected {len(entries)} lines, found {written}"
            )
        self._written_records = written

    def copy_sidecars(self, merge_order: list[str]) -> list[str]:
        by_id = {path.stem: path for path in self.source_paths}
        try:
            return self.corpus.copy_sidecars(
                [by_id[sid] for sid in merge_order], self.target_project, self.plan.outputId
            )
        except OSError as exc:
            raise MergeWriteError(f"Failed to copy side files: {exc}") from exc

    def update_index(self, entries: list[dict[str, Any]]) -> bool:
        timestamps = [e["timestamp"] for e in entries if isinstance(e.get("timestamp"), str)]
        first_prompt = next((s.firstUserMessage for s in self.plan.sources if s.firstUserMessage), "")
        try:
            entry = build_index_entry(
                self.plan.outputId,
                self.output_path,
                name=self.plan.name,
                message_count=len(entries),
                first_prompt=first_prompt,
                first_timestamp=timestamps[0] if timestamps else "",
                last_timestamp=timestamps[-1] if timestamps else "",
            )
            return update_session_index(self.target_project, entry)
        except OSError as exc:
            logger.warning("Could not update session index in %s: %s", self.target_project, exc)
            return False

    def delete_sources(self) -> tuple[list[str], list[str]]:
        if not self.write_confirmed:
            raise PipelineOrderError("Refusing to delete sources before the merged session is written")
        deleted: list[str] = []
        warnings: list[str] = []
        for path in self.source_paths:
            logger.warning("Deleting session %s...", path.stem)
            problems = self.corpus.delete_fragment(path)
            warnings.extend(problems)
            if not path.exists():
                deleted.append(path.stem)
        return deleted, warnings

    def run(self) -> MergeResult:
        started = time.perf_counter()
        plan = self.plan
        attrs = {"session.id": plan.outputId, "sources": len(plan.sources)}
        try:
            with start_span("merge", attrs):
                with start_span("merge.load"):
                    fragments = self.load()
                ordered, stitch = self.stitch(fragments)
                logger.info("Merging %d session files...", len(ordered))
                entries = merge_records(ordered, stitch, plan.outputId, plan.name)

                with start_span("merge.write"):
                    self.write(entries)
                logger.info("Merged file written to: %s", self.output_path)

                result = MergeResult(
                    sessionId=plan.outputId,
                    path=str(self.output_path),
                    name=plan.name,
                    recordCount=len(entries),
                    sizeBytes=self.output_path.stat().st_size,
                    sourceIds=[s.sessionId for s in plan.sources],
                    mergeOrder=stitch.order,
                    splices=stitch.splices,
                )
                result.copiedSidecars = self.copy_sidecars(stitch.order)
                result.indexUpdated = self.update_index(entries)

                if plan.deleteSources:
                    with start_span("merge.delete"):
                        result.deletedSources, result.deletionWarnings = self.delete_sources()
        except Exception:
            record_merge("error", (time.perf_counter() - started) * 1000)
            raise

        record_merge("success", (time.perf_counter() - started) * 1000, records=result.recordCount)
        return result


def merge_sessions(
    corpus: Corpus,
    session_ids: list[str],
    *,
    name: str = "",
    output_id: str | None = None,
    delete_sources: bool = False,
) -> MergeResult:
    plan = plan_merge(corpus, session_ids, name=name, output_id=output_id, delete_sources=delete_sources)
    return MergePipeline(corpus, plan).run()


# ── Bulk merge of split groups ─────────────────────────────────────

def merge_split_groups(
    corpus: Corpus,
    groups: list[SplitGroup],
    target_project: Path | None = None,
) -> BulkMergeReport:
    """Merge every split group into one fixed project, deleting sources.

    Each group is its own unit: a failure is logged and recorded and the
    remaining groups are still attempted.
    """
    target = target_project or corpus.target_project()
    report = BulkMergeReport()
    for group in groups:
        logger.info("Merging %d sessions with slug '%s'...", len(group.members), group.slug)
        try:
            plan = plan_merge_paths(
                [Path(member.path) for member in group.members],
                name=group.slug,
                delete_sources=True,
                target_project=target,
            )
            report.merged.append(MergePipeline(corpus, plan).run())
        except Exception as exc:
            logger.exception("Failed to merge '%s': %s", group.slug, exc)
            report.failures[group.slug] = str(exc)
    return report
