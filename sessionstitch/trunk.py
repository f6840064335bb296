"""Find the main linear path through a fragment's parent-pointer forest.

Records are addressed by id only: the lookup maps ``uuid`` to the record and
every relationship (parent, leaf, trunk member) is a lookup into it.

The trunk is the longest chain obtained by walking ``parentUuid`` back from
each leaf. Leaves are visited in file order and only a strictly longer chain
replaces the current best, so ties go to the leaf that appears first.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sessionstitch.models import SessionRecord, Trunk

logger = logging.getLogger("sessionstitch")


def index_records(records: Iterable[SessionRecord]) -> dict[str, SessionRecord]:
    """Map uuid -> record. The first record to claim a uuid keeps it."""
    by_id: dict[str, SessionRecord] = {}
    for record in records:
        if not record.uuid:
            continue
        if record.uuid in by_id:
            logger.debug("Duplicate uuid %s at %s:%d ignored for tree building", record.uuid, record.source, record.lineNumber)
            continue
        by_id[record.uuid] = record
    return by_id


def find_leaves(by_id: dict[str, SessionRecord]) -> list[str]:
    """Ids no other record points at, in input order."""
    referenced = {
        record.parentUuid
        for record in by_id.values()
        if record.parentUuid and record.parentUuid != record.uuid
    }
    return [uuid for uuid in by_id if uuid not in referenced]


def walk_to_root(leaf_uuid: str, by_id: dict[str, SessionRecord]) -> list[str]:
    """Follow parent pointers from a leaf; returns the chain root first.

    Stops at a record without a parent, at a parent that is not part of the
    fragment, or when an id repeats.
    """
    chain: list[str] = []
    seen: set[str] = set()
    current: str | None = leaf_uuid
    while current and current in by_id and current not in seen:
        seen.add(current)
        chain.append(current)
        current = by_id[current].parentUuid
    if current and current in seen:
        logger.warning("Cycle in parentUuid chain at %s; trunk walk stopped", current)
    chain.reverse()
    return chain


def extract_trunk(records: Iterable[SessionRecord]) -> Trunk | None:
    """Return the fragment's trunk, or None if no record can anchor one."""
    by_id = index_records(records)
    if not by_id:
        return None

    best: list[str] = []
    for leaf in find_leaves(by_id):
        chain = walk_to_root(leaf, by_id)
        if len(chain) > len(best):
            best = chain

    if not best:
        logger.warning("No leaf found among %d records (cyclic parent references); no trunk", len(by_id))
        return None

    return Trunk(rootUuid=best[0], leafUuid=best[-1], memberUuids=best)
