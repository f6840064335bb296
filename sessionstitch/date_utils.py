"""Shared timestamp normalization and sort-key helpers."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Fragments and records without any usable timestamp sort after everything else.
MAX_SORT_KEY = float("inf")


def _format_datetime_utc(value: datetime, *, millis: bool = False) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    if millis:
        return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
    return dt.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _parse_datetime_token(token: str) -> datetime | None:
    cleaned = token.strip()
    if not cleaned:
        return None
    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a record timestamp (ISO string or epoch number) into an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds are common in JS-produced logs.
        seconds = value / 1000.0 if value > 1e11 else float(value)
        try:
            return datetime.fromtimestamp(seconds, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        token = value.strip()
        if _DATE_ONLY_RE.match(token):
            token = f"{token}T00:00:00+00:00"
        parsed = _parse_datetime_token(token)
        if parsed is None:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def timestamp_sort_key(value: Any) -> float | None:
    """Epoch seconds for a record timestamp, or None when it is missing or unparseable."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.timestamp()


def utc_now_iso() -> str:
    """Current time in the millisecond ISO form session logs use."""
    return _format_datetime_utc(datetime.now(timezone.utc), millis=True)


def _file_created_datetime(stats: Any) -> datetime | None:
    birthtime = getattr(stats, "st_birthtime", None)
    if isinstance(birthtime, (int, float)) and birthtime > 0:
        return datetime.fromtimestamp(float(birthtime), timezone.utc)
    ctime = getattr(stats, "st_ctime", None)
    if isinstance(ctime, (int, float)) and ctime > 0:
        return datetime.fromtimestamp(float(ctime), timezone.utc)
    return None


def file_metadata_dates(path: Path) -> dict[str, str]:
    """Return normalized filesystem creation/modified timestamps."""
    try:
        stats = path.stat()
    except OSError:
        return {"createdAt": "", "updatedAt": ""}

    created_dt = _file_created_datetime(stats)
    modified_dt = datetime.fromtimestamp(float(stats.st_mtime), timezone.utc)
    return {
        "createdAt": _format_datetime_utc(created_dt) if created_dt else "",
        "updatedAt": _format_datetime_utc(modified_dt),
    }
