import unittest

from sessionstitch.merging import build_marker, merge_records
from sessionstitch.models import Fragment, SessionRecord
from sessionstitch.stitching import plan_stitch


def _fragment(session_id: str, *rows: tuple[str, str | None, str | None]) -> Fragment:
    records = []
    for uuid, parent, ts in rows:
        raw = {"type": "user", "uuid": uuid, "parentUuid": parent, "sessionId": session_id}
        if ts is not None:
            raw["timestamp"] = ts
        records.append(SessionRecord.from_entry(raw))
    return Fragment(sessionId=session_id, records=records)


class MergeRecordsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.a = _fragment(
            "A",
            ("a1", None, "2026-01-01T10:00:00Z"),
            ("a2", "a1", "2026-01-01T10:01:00Z"),
        )
        self.b = _fragment("B", ("b1", None, "2026-01-01T11:00:00Z"))

    def _merge(self, fragments: list[Fragment], name: str = "") -> list[dict]:
        ordered, plan = plan_stitch(fragments)
        return merge_records(ordered, plan, "S", name, marker_timestamp="2026-01-02T00:00:00.000Z")

    def test_two_fragments_become_one_chain(self) -> None:
        merged = self._merge([self.b, self.a])

        self.assertEqual([e["uuid"] for e in merged], ["a1", "a2", "b1"])
        self.assertEqual(merged[2]["parentUuid"], "a2")
        self.assertIsNone(merged[0]["parentUuid"])
        self.assertTrue(all(e["sessionId"] == "S" for e in merged))
        self.assertTrue(all("slug" not in e for e in merged))

    def test_named_merge_appends_marker_and_slugs_every_record(self) -> None:
        merged = self._merge([self.a, self.b], name="auth-refactor")

        self.assertEqual(len(merged), 4)
        self.assertTrue(all(e["slug"] == "auth-refactor" for e in merged))
        self.assertTrue(all(e["sessionId"] == "S" for e in merged))
        self.assertEqual(
            merged[-1],
            {
                "type": "summary",
                "summary": "auth-refactor",
                "leafUuid": "b1",
                "slug": "auth-refactor",
                "sessionId": "S",
                "timestamp": "2026-01-02T00:00:00.000Z",
            },
        )

    def test_records_interleave_by_timestamp(self) -> None:
        a = _fragment(
            "A",
            ("a1", None, "2026-01-01T10:00:00Z"),
            ("a2", "a1", "2026-01-01T10:30:00Z"),
        )
        b = _fragment(
            "B",
            ("b1", None, "2026-01-01T10:20:00Z"),
            ("b2", "b1", None),
        )

        merged = self._merge([a, b])

        self.assertEqual([e["uuid"] for e in merged], ["a1", "b1", "b2", "a2"])
        self.assertEqual(merged[1]["parentUuid"], "a2")
        self.assertNotIn("timestamp", merged[2])

    def test_equal_timestamps_keep_fragment_then_file_order(self) -> None:
        a = _fragment("A", ("a1", None, "2026-01-01T10:00:00Z"), ("a2", "a1", "2026-01-01T10:00:00Z"))
        b = _fragment("B", ("b1", None, "2026-01-01T10:00:00Z"))

        merged = self._merge([a, b])

        self.assertEqual([e["uuid"] for e in merged], ["a1", "a2", "b1"])

    def test_non_trunk_branches_keep_their_parents(self) -> None:
        a = _fragment("A", ("a1", None, "2026-01-01T10:00:00Z"))
        b = _fragment(
            "B",
            ("b1", None, "2026-01-01T11:00:00Z"),
            ("b2", "b1", "2026-01-01T11:01:00Z"),
            ("orphan", None, "2026-01-01T11:02:00Z"),
        )

        merged = {e["uuid"]: e for e in self._merge([a, b])}

        self.assertEqual(merged["b1"]["parentUuid"], "a1")
        self.assertEqual(merged["b2"]["parentUuid"], "b1")
        self.assertIsNone(merged["orphan"]["parentUuid"])

    def test_records_without_uuid_are_carried_through(self) -> None:
        summary = SessionRecord.from_entry({"type": "summary", "summary": "old title", "leafUuid": "a2"})
        a = Fragment(sessionId="A", records=[*self.a.records, summary])

        merged = self._merge([a, self.b])

        self.assertEqual(len(merged), 4)
        self.assertEqual(merged[2]["type"], "summary")
        self.assertEqual(merged[2]["sessionId"], "S")

    def test_marker_without_leaf_omits_leaf_uuid(self) -> None:
        marker = build_marker("name", "S", timestamp="2026-01-01T00:00:00.000Z")

        self.assertNotIn("leafUuid", marker)
        self.assertEqual(marker["type"], "summary")


if __name__ == "__main__":
    unittest.main()
