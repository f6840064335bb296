"""Locate session fragments on disk and manage their side files."""
from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

from sessionstitch import config
from sessionstitch.errors import FragmentNotFoundError
from sessionstitch.models import FragmentSummary
from sessionstitch.parsers.summaries import summarize_fragment

logger = logging.getLogger("sessionstitch")

SESSION_ID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def is_session_id(value: str) -> bool:
    return bool(SESSION_ID_PATTERN.match(value or ""))


class Corpus:
    """Session files under ``<claude_dir>/projects/<project>/<session-id>.jsonl``."""

    def __init__(self, claude_dir: Path | None = None):
        self.claude_dir = Path(claude_dir) if claude_dir is not None else config.CLAUDE_DIR
        self.projects_dir = self.claude_dir / "projects"

    # ── Discovery ──────────────────────────────────────────────────

    def project_dirs(self) -> list[Path]:
        if not self.projects_dir.is_dir():
            return []
        return sorted(d for d in self.projects_dir.iterdir() if d.is_dir() and not d.name.startswith("."))

    def fragment_paths(self, project_dir: Path | None = None) -> list[Path]:
        dirs = [project_dir] if project_dir is not None else self.project_dirs()
        paths: list[Path] = []
        for directory in dirs:
            paths.extend(
                sorted(p for p in directory.glob("*.jsonl") if p.is_file() and is_session_id(p.stem))
            )
        return paths

    def resolve_project(self, project: str) -> Path | None:
        """Match a project by directory name or by the working-directory path it encodes."""
        candidates = {project, config.encode_project_path(project)}
        encoded = config.encode_project_path(project.rstrip("/"))
        candidates.update({encoded, f"-{encoded}", f"{encoded}-", f"-{encoded}-"})
        for directory in self.project_dirs():
            if directory.name in candidates:
                return directory
        return None

    def find_fragment(self, session_id: str) -> Path | None:
        for directory in self.project_dirs():
            candidate = directory / f"{session_id}.jsonl"
            if candidate.is_file():
                return candidate
        return None

    def locate(self, session_ids: list[str]) -> list[Path]:
        paths: list[Path] = []
        for session_id in session_ids:
            path = self.find_fragment(session_id)
            if path is None:
                raise FragmentNotFoundError(session_id, str(self.projects_dir))
            paths.append(path)
        return paths

    def summaries(self, project_dir: Path | None = None) -> list[FragmentSummary]:
        return [summarize_fragment(path, path.parent.name) for path in self.fragment_paths(project_dir)]

    def target_project(self, name: str | None = None) -> Path:
        return self.projects_dir / (name or config.MERGE_PROJECT)

    # ── Side files ─────────────────────────────────────────────────

    @staticmethod
    def side_dir(fragment_path: Path) -> Path:
        return fragment_path.parent / fragment_path.stem

    def copy_sidecars(self, fragment_paths: list[Path], target_project: Path, new_session_id: str) -> list[str]:
        """Copy every source side-directory file under ``<target>/<new id>/``.

        Relative layout is kept; a name already taken gets a
        ``-from-<source id prefix>`` suffix.
        """
        target_root = target_project / new_session_id
        copied: list[str] = []
        for fragment_path in fragment_paths:
            source_root = self.side_dir(fragment_path)
            if not source_root.is_dir():
                continue
            logger.info("Copying side files from session %s...", fragment_path.stem)
            for source_file in sorted(p for p in source_root.rglob("*") if p.is_file()):
                destination = target_root / source_file.relative_to(source_root)
                if destination.exists():
                    destination = destination.with_name(
                        f"{destination.stem}-from-{fragment_path.stem[:8]}{destination.suffix}"
                    )
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source_file, destination)
                copied.append(str(destination))
        return copied

    def auxiliary_paths(self, session_id: str) -> list[Path]:
        """Per-session files kept outside the projects tree."""
        paths = [
            self.claude_dir / "debug" / f"{session_id}.txt",
            self.claude_dir / "session-env" / session_id,
        ]
        todos_dir = self.claude_dir / "todos"
        if todos_dir.is_dir():
            paths.extend(sorted(todos_dir.glob(f"{session_id}*.json")))
        return paths

    def delete_fragment(self, fragment_path: Path) -> list[str]:
        """Delete a session file and everything attached to it.

        Returns one warning per path that could not be removed; a failure
        never stops the remaining deletions.
        """
        session_id = fragment_path.stem
        warnings: list[str] = []
        for path in [fragment_path, self.side_dir(fragment_path), *self.auxiliary_paths(session_id)]:
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
            except OSError as exc:
                message = f"Could not delete {path}: {exc}"
                logger.warning(message)
                warnings.append(message)
        return warnings
