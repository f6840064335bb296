"""Exceptions raised by the merge pipeline."""
from __future__ import annotations


class SessionStitchError(ValueError):
    """Base class for errors that stop a merge before sources are touched."""


class FragmentNotFoundError(SessionStitchError):
    def __init__(self, session_id: str, projects_dir: str = ""):
        self.session_id = session_id
        where = f" in any project under {projects_dir}" if projects_dir else ""
        super().__init__(f"Session {session_id} not found{where}")


class TooFewFragmentsError(SessionStitchError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"At least 2 session IDs are required for merging (got {count})")


class OutputCollisionError(SessionStitchError):
    """The requested output id would overwrite an existing session."""


class MergeWriteError(SessionStitchError):
    """The merged file could not be written or failed verification."""


class PipelineOrderError(RuntimeError):
    """A destructive stage was requested before its preconditions held."""
