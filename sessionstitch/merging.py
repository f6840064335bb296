"""Chronological merge of fragment records into one rewritten stream."""
from __future__ import annotations

from typing import Any

from sessionstitch.date_utils import utc_now_iso
from sessionstitch.models import Fragment, SessionRecord, StitchPlan


def _keyed_records(ordered: list[Fragment]) -> list[tuple[float, str, SessionRecord]]:
    """Pair every record with its sort key, in merge order.

    A record without a usable timestamp borrows the key of the closest
    timestamped record before it in the same fragment (or the fragment's
    earliest key), which keeps it next to its neighbours after sorting.
    """
    keyed: list[tuple[float, str, SessionRecord]] = []
    for fragment in ordered:
        carried = fragment.earliest_sort_key
        for record in fragment.records:
            if record.sortKey is not None:
                carried = record.sortKey
            keyed.append((carried, fragment.sessionId, record))
    return keyed


def build_marker(name: str, session_id: str, leaf_uuid: str = "", timestamp: str | None = None) -> dict[str, Any]:
    """Trailing summary entry that names the merged session in pickers."""
    marker: dict[str, Any] = {
        "type": "summary",
        "summary": name,
        "leafUuid": leaf_uuid,
        "slug": name,
        "sessionId": session_id,
        "timestamp": timestamp or utc_now_iso(),
    }
    if not leaf_uuid:
        del marker["leafUuid"]
    return marker


def merge_records(
    ordered: list[Fragment],
    plan: StitchPlan,
    session_id: str,
    name: str = "",
    *,
    marker_timestamp: str | None = None,
) -> list[dict[str, Any]]:
    """Merge all records of ``ordered`` fragments into one time-sorted list.

    Every entry gets ``sessionId``; every entry gets ``slug`` when ``name`` is
    given; splice roots get their new ``parentUuid``. With a name, a marker
    entry is appended last.
    """
    keyed = _keyed_records(ordered)
    # list.sort is stable: equal keys keep fragment order, then file order
    keyed.sort(key=lambda item: item[0])

    merged: list[dict[str, Any]] = []
    spliced: set[tuple[str, str]] = set()
    for _, fragment_id, record in keyed:
        override = None
        if record.uuid and (fragment_id, record.uuid) not in spliced:
            override = plan.parent_override(fragment_id, record.uuid)
            if override is not None:
                spliced.add((fragment_id, record.uuid))
        merged.append(record.rewritten(session_id=session_id, slug=name or None, parent_uuid=override))

    if name:
        merged.append(build_marker(name, session_id, plan.final_leaf, marker_timestamp))
    return merged
