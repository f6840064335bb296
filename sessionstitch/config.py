"""sessionstitch configuration."""
import os
import re
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def encode_project_path(path: str | Path) -> str:
    """Encode a working directory the way Claude Code names project dirs."""
    return re.sub(r"[^A-Za-z0-9]", "-", str(path))


# Claude data layout
CLAUDE_DIR = Path(os.getenv("CLAUDE_DIR", str(Path.home() / ".claude"))).expanduser()
PROJECTS_DIR = CLAUDE_DIR / "projects"

# Bulk merges of split groups always land in this project directory name
MERGE_PROJECT = os.getenv("SESSIONSTITCH_MERGE_PROJECT", encode_project_path(Path.home()))

# External catalog updated after a merge, relative to the target project dir
INDEX_FILENAME = os.getenv("SESSIONSTITCH_INDEX_FILENAME", "sessions-index.json")

# Listing
PREVIEW_CHARS = _env_int("SESSIONSTITCH_PREVIEW_CHARS", 80)

# Observability
OTEL_ENABLED = _env_bool("SESSIONSTITCH_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("SESSIONSTITCH_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("SESSIONSTITCH_OTEL_SERVICE_NAME", "sessionstitch")
