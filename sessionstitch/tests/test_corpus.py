import unittest

from sessionstitch.corpus import Corpus, is_session_id
from sessionstitch.errors import FragmentNotFoundError
from sessionstitch.tests.fixtures import OUT_ID, PROJECT, SID_A, SID_B, CorpusTestCase, entry, write_jsonl


class CorpusDiscoveryTests(CorpusTestCase):
    def test_only_uuid_named_files_are_fragments(self) -> None:
        self.write_session(SID_A, [entry("a1", None, "2026-01-01T10:00:00Z")])
        write_jsonl(self.project_dir / "notes.jsonl", [{"x": 1}])
        write_jsonl(self.corpus.projects_dir / ".hidden" / f"{SID_B}.jsonl", [{"x": 1}])

        self.assertEqual([p.stem for p in self.corpus.fragment_paths()], [SID_A])

    def test_locate_raises_for_unknown_session(self) -> None:
        self.write_session(SID_A, [entry("a1", None, "2026-01-01T10:00:00Z")])

        with self.assertRaises(FragmentNotFoundError) as ctx:
            self.corpus.locate([SID_A, SID_B])

        self.assertEqual(ctx.exception.session_id, SID_B)
        self.assertIn(SID_B, str(ctx.exception))

    def test_resolve_project_accepts_path_or_dir_name(self) -> None:
        self.assertEqual(self.corpus.resolve_project(PROJECT), self.project_dir)
        self.assertEqual(self.corpus.resolve_project("/home/dev/app"), self.project_dir)
        self.assertEqual(self.corpus.resolve_project("/home/dev/app/"), self.project_dir)
        self.assertIsNone(self.corpus.resolve_project("/elsewhere"))

    def test_missing_projects_dir_is_empty(self) -> None:
        corpus = Corpus(self.claude_dir / "nope")

        self.assertEqual(corpus.fragment_paths(), [])
        self.assertEqual(corpus.summaries(), [])

    def test_session_id_pattern(self) -> None:
        self.assertTrue(is_session_id(SID_A))
        self.assertFalse(is_session_id(SID_A.upper()))
        self.assertFalse(is_session_id("not-a-uuid"))


class SidecarTests(CorpusTestCase):
    def test_copy_keeps_layout_and_renames_collisions(self) -> None:
        path_a = self.write_session(SID_A, [entry("a1", None, "2026-01-01T10:00:00Z")])
        path_b = self.write_session(SID_B, [entry("b1", None, "2026-01-01T11:00:00Z")])
        (self.project_dir / SID_A / "tool-results").mkdir(parents=True)
        (self.project_dir / SID_A / "tool-results" / "out.txt").write_text("from a", encoding="utf-8")
        (self.project_dir / SID_B / "tool-results").mkdir(parents=True)
        (self.project_dir / SID_B / "tool-results" / "out.txt").write_text("from b", encoding="utf-8")
        (self.project_dir / SID_B / "notes.md").write_text("b notes", encoding="utf-8")

        copied = self.corpus.copy_sidecars([path_a, path_b], self.project_dir, OUT_ID)

        target = self.project_dir / OUT_ID
        self.assertEqual(len(copied), 3)
        self.assertEqual((target / "tool-results" / "out.txt").read_text(encoding="utf-8"), "from a")
        renamed = target / "tool-results" / f"out-from-{SID_B[:8]}.txt"
        self.assertEqual(renamed.read_text(encoding="utf-8"), "from b")
        self.assertTrue((target / "notes.md").is_file())
        self.assertTrue((self.project_dir / SID_A / "tool-results" / "out.txt").is_file())

    def test_no_side_dirs_copies_nothing(self) -> None:
        path_a = self.write_session(SID_A, [entry("a1", None, "2026-01-01T10:00:00Z")])

        self.assertEqual(self.corpus.copy_sidecars([path_a], self.project_dir, OUT_ID), [])
        self.assertFalse((self.project_dir / OUT_ID).exists())

    def test_delete_removes_file_side_dir_and_auxiliary_files(self) -> None:
        path = self.write_session(SID_A, [entry("a1", None, "2026-01-01T10:00:00Z")])
        (self.project_dir / SID_A).mkdir()
        (self.project_dir / SID_A / "x.txt").write_text("x", encoding="utf-8")
        debug = self.claude_dir / "debug" / f"{SID_A}.txt"
        debug.parent.mkdir(parents=True)
        debug.write_text("log", encoding="utf-8")
        env_dir = self.claude_dir / "session-env" / SID_A
        env_dir.mkdir(parents=True)
        todo = self.claude_dir / "todos" / f"{SID_A}-agent-{SID_A}.json"
        todo.parent.mkdir(parents=True)
        todo.write_text("[]", encoding="utf-8")
        other_todo = self.claude_dir / "todos" / f"{SID_B}.json"
        other_todo.write_text("[]", encoding="utf-8")

        warnings = self.corpus.delete_fragment(path)

        self.assertEqual(warnings, [])
        for gone in (path, self.project_dir / SID_A, debug, env_dir, todo):
            self.assertFalse(gone.exists(), gone)
        self.assertTrue(other_todo.exists())


if __name__ == "__main__":
    unittest.main()
