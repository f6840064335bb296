"""Detect sessions that were split across several files."""
from __future__ import annotations

from sessionstitch.models import FragmentSummary, SplitGroup


def group_by_slug(summaries: list[FragmentSummary]) -> dict[str, list[FragmentSummary]]:
    """Bucket fragments by effective slug, keeping first-seen order.

    Fragments without a slug are not eligible and are left out.
    """
    buckets: dict[str, list[FragmentSummary]] = {}
    for summary in summaries:
        if not summary.slug:
            continue
        buckets.setdefault(summary.slug, []).append(summary)
    return buckets


def find_split_groups(summaries: list[FragmentSummary]) -> list[SplitGroup]:
    """Every slug shared by two or more fragments is a split group."""
    return [
        SplitGroup(slug=slug, members=members)
        for slug, members in group_by_slug(summaries).items()
        if len(members) >= 2
    ]
