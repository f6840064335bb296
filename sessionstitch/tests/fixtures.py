import json
import tempfile
import unittest
from pathlib import Path
from typing import Any

from sessionstitch.corpus import Corpus

PROJECT = "-home-dev-app"

SID_A = "aaaaaaaa-0000-4000-8000-000000000001"
SID_B = "bbbbbbbb-0000-4000-8000-000000000002"
SID_C = "cccccccc-0000-4000-8000-000000000003"
SID_D = "dddddddd-0000-4000-8000-000000000004"
SID_E = "eeeeeeee-0000-4000-8000-000000000005"
OUT_ID = "0f0f0f0f-0000-4000-8000-00000000000f"


def entry(uuid: str, parent: str | None, timestamp: str | None, **extra: Any) -> dict[str, Any]:
    record: dict[str, Any] = {"type": "user", "uuid": uuid, "parentUuid": parent}
    if timestamp is not None:
        record["timestamp"] = timestamp
    record.update(extra)
    return record


def user_message(uuid: str, parent: str | None, timestamp: str, text: str, **extra: Any) -> dict[str, Any]:
    return entry(uuid, parent, timestamp, message={"role": "user", "content": text}, **extra)


def write_jsonl(path: Path, lines: list[Any]) -> Path:
    """Write dicts as JSON lines; plain strings are written verbatim."""
    path.parent.mkdir(parents=True, exist_ok=True)
    rendered = [line if isinstance(line, str) else json.dumps(line) for line in lines]
    path.write_text("\n".join(rendered) + "\n", encoding="utf-8")
    return path


class CorpusTestCase(unittest.TestCase):
    """Base case with a throwaway ``~/.claude`` layout."""

    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.claude_dir = Path(tmpdir.name) / ".claude"
        self.corpus = Corpus(self.claude_dir)
        self.project_dir = self.corpus.projects_dir / PROJECT
        self.project_dir.mkdir(parents=True)

    def write_session(self, session_id: str, lines: list[Any], project: str = PROJECT) -> Path:
        return write_jsonl(self.corpus.projects_dir / project / f"{session_id}.jsonl", lines)

    def read_output(self, path: Path | str) -> list[dict[str, Any]]:
        text = Path(path).read_text(encoding="utf-8")
        return [json.loads(line) for line in text.splitlines() if line.strip()]
