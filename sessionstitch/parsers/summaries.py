"""Scan session files for listing and split-detection metadata."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sessionstitch import config
from sessionstitch.date_utils import timestamp_sort_key
from sessionstitch.models import FragmentSummary

logger = logging.getLogger("sessionstitch.parsers")

# Injected wrappers that are not something the user typed.
_NON_PROMPT_PREFIXES = (
    "<command-",
    "<local-command-",
    "<system-reminder>",
    "Caveat:",
)


def _content_to_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks: list[str] = []
        for block in content:
            if isinstance(block, str):
                chunks.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                text = block.get("text")
                if isinstance(text, str) and text.strip():
                    chunks.append(text)
        return " ".join(chunks)
    return ""


def user_prompt_text(entry: dict[str, Any]) -> str:
    """Text a human typed in a `user` entry, or "" for tool results and meta entries."""
    if entry.get("type") != "user" or entry.get("isMeta"):
        return ""
    message = entry.get("message")
    if not isinstance(message, dict):
        return ""
    text = " ".join(_content_to_text(message.get("content")).split())
    if not text or text.startswith(_NON_PROMPT_PREFIXES):
        return ""
    return text


def _timestamp_text(entry: dict[str, Any]) -> str:
    value = entry.get("timestamp")
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def summarize_fragment(path: Path, project: str = "", preview_chars: int | None = None) -> FragmentSummary:
    """Collect metadata for one session file.

    The effective slug is the one on the last entry that carries a slug, so a
    session renamed partway through groups under its newest name.
    """
    limit = config.PREVIEW_CHARS if preview_chars is None else preview_chars
    summary = FragmentSummary(sessionId=path.stem, project=project or path.parent.name, path=str(path))
    try:
        summary.sizeBytes = path.stat().st_size
    except OSError:
        summary.sizeBytes = 0

    with path.open("rb") as handle:
        for raw in handle:
            if not raw.strip():
                continue
            summary.lineCount += 1
            try:
                entry = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                summary.malformedLines += 1
                continue
            if not isinstance(entry, dict):
                summary.malformedLines += 1
                continue

            slug = entry.get("slug")
            if isinstance(slug, str) and slug.strip():
                summary.slug = slug.strip()

            ts = _timestamp_text(entry)
            if ts:
                if not summary.firstTimestamp:
                    summary.firstTimestamp = ts
                summary.lastTimestamp = ts

            key = timestamp_sort_key(entry.get("timestamp"))
            if key is not None and (summary.earliestSortKey is None or key < summary.earliestSortKey):
                summary.earliestSortKey = key
                summary.earliestTimestamp = ts

            if not summary.firstUserMessage:
                prompt = user_prompt_text(entry)
                if prompt:
                    summary.firstUserMessage = prompt[:limit]

    if summary.malformedLines:
        logger.debug("%s: %d malformed line(s) during scan", path.name, summary.malformedLines)
    return summary
