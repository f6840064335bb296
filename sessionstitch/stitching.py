"""Order fragments in time and splice their trunks into one chain."""
from __future__ import annotations

import logging

from sessionstitch.date_utils import MAX_SORT_KEY
from sessionstitch.models import Fragment, FragmentSummary, Splice, StitchPlan, Trunk
from sessionstitch.trunk import extract_trunk

logger = logging.getLogger("sessionstitch")


def order_fragments(fragments: list[Fragment]) -> list[Fragment]:
    """Sort by earliest record timestamp; undated fragments go last.

    The sort is stable, so fragments with equal keys keep the order they were
    supplied in.
    """
    return sorted(fragments, key=lambda fragment: fragment.earliest_sort_key)


def order_summaries(summaries: list[FragmentSummary]) -> list[FragmentSummary]:
    """Merge order from metadata alone; same keys as ``order_fragments``."""

    def key(summary: FragmentSummary) -> float:
        return MAX_SORT_KEY if summary.earliestSortKey is None else summary.earliestSortKey

    return sorted(summaries, key=key)


def build_splices(ordered: list[tuple[str, Trunk | None]]) -> list[Splice]:
    """Attach each trunk root to the previous fragment's trunk leaf.

    Fragments without a trunk are passed over; the next trunk-bearing fragment
    attaches to the last one seen.
    """
    splices: list[Splice] = []
    previous: Trunk | None = None
    for fragment_id, trunk in ordered:
        if trunk is None:
            logger.warning("Fragment %s has no trunk; it will not be stitched", fragment_id)
            continue
        if previous is not None and trunk.rootUuid == previous.leafUuid:
            logger.warning("Fragment %s root %s collides with the previous leaf; not spliced", fragment_id, trunk.rootUuid)
        elif previous is not None:
            splices.append(
                Splice(fragmentId=fragment_id, rootUuid=trunk.rootUuid, parentUuid=previous.leafUuid)
            )
        previous = trunk
    return splices


def plan_stitch(fragments: list[Fragment]) -> tuple[list[Fragment], StitchPlan]:
    """Compute merge order, per-fragment trunks and the splice list."""
    ordered = order_fragments(fragments)
    trunks = {fragment.sessionId: extract_trunk(fragment.records) for fragment in ordered}
    splices: list[Splice] = []
    if len(ordered) >= 2:
        splices = build_splices([(fragment.sessionId, trunks[fragment.sessionId]) for fragment in ordered])

    for splice in splices:
        logger.debug("Splice %s: %s -> %s", splice.fragmentId, splice.rootUuid, splice.parentUuid)

    plan = StitchPlan(
        order=[fragment.sessionId for fragment in ordered],
        trunks=trunks,
        splices=splices,
    )
    return ordered, plan
