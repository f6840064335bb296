"""Keep a project's sessions-index.json in step with merged sessions."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from sessionstitch import config
from sessionstitch.date_utils import file_metadata_dates, utc_now_iso

logger = logging.getLogger("sessionstitch")


def build_index_entry(
    session_id: str,
    merged_path: Path,
    *,
    name: str = "",
    message_count: int = 0,
    first_prompt: str = "",
    first_timestamp: str = "",
    last_timestamp: str = "",
) -> dict[str, Any]:
    stats = merged_path.stat()
    fs_dates = file_metadata_dates(merged_path)
    return {
        "sessionId": session_id,
        "fullPath": str(merged_path.resolve()),
        "fileMtime": int(stats.st_mtime * 1000),
        "firstPrompt": first_prompt,
        "summary": name or "merged-session",
        "messageCount": message_count,
        "created": first_timestamp or fs_dates["createdAt"],
        "modified": last_timestamp or fs_dates["updatedAt"],
        "isSidechain": False,
        "merged": True,
        "mergedAt": utc_now_iso(),
    }


def _upsert(index: Any, entry: dict[str, Any]) -> Any:
    session_id = entry["sessionId"]
    if isinstance(index, dict) and isinstance(index.get("entries"), list):
        entries = [e for e in index["entries"] if not (isinstance(e, dict) and e.get("sessionId") == session_id)]
        entries.append(entry)
        return {**index, "entries": entries}
    if isinstance(index, list):
        kept = [e for e in index if not (isinstance(e, dict) and session_id in (e.get("sessionId"), e.get("id")))]
        kept.append(entry)
        return kept
    if isinstance(index, dict):
        return {**index, session_id: entry}
    return {"version": 1, "entries": [entry]}


def _write_atomic(path: Path, payload: Any) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def update_session_index(project_dir: Path, entry: dict[str, Any]) -> bool:
    """Upsert ``entry`` into the project's index file if the project has one.

    Returns True when the index was written. A missing or unreadable index
    is left alone.
    """
    index_path = project_dir / config.INDEX_FILENAME
    if not index_path.exists():
        logger.info("No %s found, skipping index update.", config.INDEX_FILENAME)
        return False

    try:
        index: Any = json.loads(index_path.read_text(encoding="utf-8") or "null")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s (%s); index not updated", index_path, exc)
        return False

    _write_atomic(index_path, _upsert(index, entry))
    logger.info("Updated %s", index_path)
    return True
