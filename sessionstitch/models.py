"""Pydantic models for session fragments, trunks, splices and merge results."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from sessionstitch.date_utils import MAX_SORT_KEY, timestamp_sort_key


def _as_id(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


# ── Record-level models ────────────────────────────────────────────

class SessionRecord(BaseModel):
    """One parsed JSONL line.

    The fields the stitching algorithms depend on are lifted out of the
    entry; the full entry is kept in ``raw`` so unknown keys round-trip
    untouched.
    """

    model_config = ConfigDict(frozen=True)

    uuid: str = ""
    parentUuid: Optional[str] = None
    sessionId: str = ""
    slug: str = ""
    timestamp: Any = None
    sortKey: Optional[float] = None
    source: str = ""
    lineNumber: int = 0
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: dict[str, Any], source: str = "", line_number: int = 0) -> SessionRecord:
        parent = _as_id(entry.get("parentUuid"))
        return cls(
            uuid=_as_id(entry.get("uuid")),
            parentUuid=parent or None,
            sessionId=_as_id(entry.get("sessionId")),
            slug=_as_id(entry.get("slug")),
            timestamp=entry.get("timestamp"),
            sortKey=timestamp_sort_key(entry.get("timestamp")),
            source=source,
            lineNumber=line_number,
            raw=entry,
        )

    @property
    def is_root(self) -> bool:
        return self.parentUuid is None

    def rewritten(
        self,
        *,
        session_id: str,
        slug: str | None = None,
        parent_uuid: str | None = None,
    ) -> dict[str, Any]:
        """Return a copy of the entry with merge rewrites applied.

        Existing keys keep their position; keys the entry lacked are appended.
        """
        entry = dict(self.raw)
        entry["sessionId"] = session_id
        if slug:
            entry["slug"] = slug
        if parent_uuid is not None:
            entry["parentUuid"] = parent_uuid
        return entry


class Fragment(BaseModel):
    """All records read from one session file."""

    sessionId: str
    path: str = ""
    records: list[SessionRecord] = Field(default_factory=list)
    malformedLines: int = 0

    @property
    def earliest_sort_key(self) -> float:
        keys = [r.sortKey for r in self.records if r.sortKey is not None]
        return min(keys) if keys else MAX_SORT_KEY


class Trunk(BaseModel):
    """The dominant linear path of a fragment, root first."""

    rootUuid: str
    leafUuid: str
    memberUuids: list[str] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.memberUuids)


class Splice(BaseModel):
    """Re-parent ``rootUuid`` (owned by ``fragmentId``) onto ``parentUuid``."""

    fragmentId: str
    rootUuid: str
    parentUuid: str


class StitchPlan(BaseModel):
    order: list[str] = Field(default_factory=list)
    trunks: dict[str, Optional[Trunk]] = Field(default_factory=dict)
    splices: list[Splice] = Field(default_factory=list)

    def splice_map(self) -> dict[str, str]:
        """Plain root -> preceding leaf mapping."""
        return {s.rootUuid: s.parentUuid for s in self.splices}

    def parent_override(self, fragment_id: str, uuid: str) -> str | None:
        for splice in self.splices:
            if splice.fragmentId == fragment_id and splice.rootUuid == uuid:
                return splice.parentUuid
        return None

    @property
    def final_leaf(self) -> str:
        for fragment_id in reversed(self.order):
            trunk = self.trunks.get(fragment_id)
            if trunk is not None:
                return trunk.leafUuid
        return ""


# ── Corpus-level models ────────────────────────────────────────────

class FragmentSummary(BaseModel):
    """Metadata for one session file, gathered without building its tree."""

    sessionId: str
    project: str = ""
    path: str = ""
    sizeBytes: int = 0
    lineCount: int = 0
    slug: str = ""
    firstTimestamp: str = ""
    lastTimestamp: str = ""
    earliestTimestamp: str = ""
    earliestSortKey: Optional[float] = None
    firstUserMessage: str = ""
    malformedLines: int = 0


class SplitGroup(BaseModel):
    slug: str
    members: list[FragmentSummary] = Field(default_factory=list)

    @property
    def session_ids(self) -> list[str]:
        return [m.sessionId for m in self.members]


# ── Merge models ───────────────────────────────────────────────────

class MergePlan(BaseModel):
    sources: list[FragmentSummary] = Field(default_factory=list)
    outputId: str
    name: str = ""
    targetProject: str
    outputPath: str
    deleteSources: bool = False


class MergeResult(BaseModel):
    sessionId: str
    path: str
    name: str = ""
    recordCount: int = 0
    sizeBytes: int = 0
    sourceIds: list[str] = Field(default_factory=list)
    mergeOrder: list[str] = Field(default_factory=list)
    splices: list[Splice] = Field(default_factory=list)
    copiedSidecars: list[str] = Field(default_factory=list)
    indexUpdated: bool = False
    deletedSources: list[str] = Field(default_factory=list)
    deletionWarnings: list[str] = Field(default_factory=list)


class BulkMergeReport(BaseModel):
    merged: list[MergeResult] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures
