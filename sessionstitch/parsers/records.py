"""Parse JSONL session fragments into SessionRecord models."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from sessionstitch.models import Fragment, SessionRecord
from sessionstitch.observability import record_parser_failure

logger = logging.getLogger("sessionstitch.parsers")


def parse_record_line(line: str, source: str = "", line_number: int = 0) -> SessionRecord | None:
    """Parse one JSONL line.

    Returns None for blank lines and for lines that are not a JSON object;
    the latter are logged as a warning naming the source and line.
    """
    text = line.strip()
    if not text:
        return None
    try:
        entry: Any = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed JSON at %s:%d", source or "<input>", line_number)
        record_parser_failure("records")
        return None
    if not isinstance(entry, dict):
        logger.warning("Skipping non-object JSON at %s:%d", source or "<input>", line_number)
        record_parser_failure("records")
        return None
    return SessionRecord.from_entry(entry, source=source, line_number=line_number)


def decode_line(raw: bytes, source: str = "", line_number: int = 0) -> str | None:
    """Strict UTF-8 decode; an undecodable line is logged and returns None."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Skipping undecodable line at %s:%d", source or "<input>", line_number)
        record_parser_failure("records")
        return None


def iter_records(lines: Iterable[str | bytes], source: str = "") -> Iterator[tuple[int, SessionRecord | None]]:
    for line_number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        if isinstance(line, bytes):
            text = decode_line(line, source, line_number)
            if text is None:
                yield line_number, None
                continue
            line = text
        yield line_number, parse_record_line(line, source, line_number)


def read_fragment(path: Path, session_id: str | None = None) -> Fragment:
    """Read every parseable record from a session file, in file order."""
    source = str(path)
    records: list[SessionRecord] = []
    malformed = 0
    with path.open("rb") as handle:
        for _, record in iter_records(handle, source):
            if record is None:
                malformed += 1
                continue
            records.append(record)

    if malformed:
        logger.info("%s: %d record(s) read, %d malformed line(s) skipped", path.name, len(records), malformed)

    return Fragment(
        sessionId=session_id or path.stem,
        path=source,
        records=records,
        malformedLines=malformed,
    )


def serialize_entry(entry: dict[str, Any]) -> str:
    return json.dumps(entry, separators=(",", ":"))
