import unittest

from sessionstitch.models import SessionRecord
from sessionstitch.trunk import extract_trunk, find_leaves, index_records, walk_to_root


def _records(*pairs: tuple[str, str | None]) -> list[SessionRecord]:
    return [SessionRecord.from_entry({"uuid": uuid, "parentUuid": parent}) for uuid, parent in pairs]


class TrunkExtractionTests(unittest.TestCase):
    def test_single_record_is_root_and_leaf(self) -> None:
        trunk = extract_trunk(_records(("a", None)))

        assert trunk is not None
        self.assertEqual(trunk.rootUuid, "a")
        self.assertEqual(trunk.leafUuid, "a")
        self.assertEqual(trunk.length, 1)

    def test_longest_branch_wins(self) -> None:
        trunk = extract_trunk(_records(("a", None), ("b", "a"), ("c", "b"), ("d", "a")))

        assert trunk is not None
        self.assertEqual(trunk.memberUuids, ["a", "b", "c"])
        self.assertEqual(trunk.leafUuid, "c")

    def test_equal_length_branches_prefer_first_leaf_in_file_order(self) -> None:
        trunk = extract_trunk(_records(("a", None), ("b", "a"), ("c", "a")))

        assert trunk is not None
        self.assertEqual(trunk.leafUuid, "b")

    def test_disconnected_components_keep_only_the_longest(self) -> None:
        trunk = extract_trunk(_records(("a", None), ("b", "a"), ("x", None), ("y", "x"), ("z", "y")))

        assert trunk is not None
        self.assertEqual(trunk.rootUuid, "x")
        self.assertEqual(trunk.leafUuid, "z")

    def test_dangling_parent_ends_the_walk(self) -> None:
        trunk = extract_trunk(_records(("a", "not-in-this-file"), ("b", "a")))

        assert trunk is not None
        self.assertEqual(trunk.rootUuid, "a")
        self.assertEqual(trunk.memberUuids, ["a", "b"])

    def test_pure_cycle_has_no_trunk(self) -> None:
        with self.assertLogs("sessionstitch", level="WARNING"):
            trunk = extract_trunk(_records(("a", "b"), ("b", "a")))

        self.assertIsNone(trunk)

    def test_cycle_behind_a_leaf_stops_without_looping(self) -> None:
        with self.assertLogs("sessionstitch", level="WARNING") as logs:
            trunk = extract_trunk(_records(("a", "c"), ("b", "a"), ("c", "b"), ("d", "c")))

        assert trunk is not None
        self.assertEqual(trunk.memberUuids, ["a", "b", "c", "d"])
        self.assertTrue(any("Cycle" in line for line in logs.output))

    def test_records_without_uuid_do_not_form_a_trunk(self) -> None:
        records = [SessionRecord.from_entry({"type": "summary", "summary": "x"})]

        self.assertIsNone(extract_trunk(records))

    def test_duplicate_uuid_keeps_first_occurrence(self) -> None:
        by_id = index_records(_records(("a", None), ("b", "a"), ("b", None)))

        self.assertEqual(by_id["b"].parentUuid, "a")

    def test_self_parented_record_is_a_leaf(self) -> None:
        by_id = index_records(_records(("a", None), ("b", "b")))

        self.assertEqual(find_leaves(by_id), ["a", "b"])

    def test_every_trunk_member_points_at_its_predecessor(self) -> None:
        records = _records(
            ("r", None), ("m1", "r"), ("m2", "m1"), ("side", "m1"), ("m3", "m2"),
            ("side2", "side"), ("m4", "m3"), ("other", None),
        )
        by_id = index_records(records)

        trunk = extract_trunk(records)

        assert trunk is not None
        self.assertEqual(trunk.memberUuids, walk_to_root(trunk.leafUuid, by_id))
        self.assertIsNone(by_id[trunk.rootUuid].parentUuid)
        for child, parent in zip(trunk.memberUuids[1:], trunk.memberUuids):
            self.assertEqual(by_id[child].parentUuid, parent)
        for leaf in find_leaves(by_id):
            self.assertLessEqual(len(walk_to_root(leaf, by_id)), trunk.length)


if __name__ == "__main__":
    unittest.main()
