"""Tests for nearest-match resolution and cyclic navigation."""

from __future__ import annotations

import unittest
from pathlib import Path

from reftree.locations import Position, location_at
from reftree.model import MatchTree
from reftree.providers import QueryKind

ROOT = Path("/work")


def _tree(locations, uri: Path, position: Position) -> MatchTree:
    return MatchTree(QueryKind.REFERENCES, uri, position, locations)


def _two_file_tree(position: Position, origin: str = "a.txt") -> MatchTree:
    return _tree(
        [
            location_at(ROOT / "a.txt", 1, 0, 5),
            location_at(ROOT / "a.txt", 3, 2, 6),
            location_at(ROOT / "a.txt", 7, 0, 3),
            location_at(ROOT / "b.txt", 0, 0, 4),
            location_at(ROOT / "b.txt", 2, 0, 4),
        ],
        ROOT / origin,
        position,
    )


class FirstMatchTests(unittest.TestCase):
    def test_entry_containing_cursor_wins(self) -> None:
        tree = _two_file_tree(Position(3, 4))

        self.assertIs(tree.first(), tree.groups[0].entries[1])

    def test_cursor_at_range_end_counts_as_contained(self) -> None:
        tree = _two_file_tree(Position(3, 6))

        self.assertIs(tree.first(), tree.groups[0].entries[1])

    def test_cursor_before_all_entries_picks_first_after(self) -> None:
        tree = _two_file_tree(Position(0, 0))

        self.assertIs(tree.first(), tree.groups[0].entries[0])

    def test_cursor_between_entries_picks_next_one(self) -> None:
        tree = _two_file_tree(Position(5, 0))

        self.assertIs(tree.first(), tree.groups[0].entries[2])

    def test_cursor_after_all_entries_picks_last_before(self) -> None:
        tree = _two_file_tree(Position(40, 0))

        self.assertIs(tree.first(), tree.groups[0].entries[2])

    def test_missing_origin_file_uses_longest_common_prefix(self) -> None:
        tree = _tree(
            [location_at(ROOT / "ax.txt", 0, 0, 1), location_at(ROOT / "ab.txt", 4, 0, 1)],
            ROOT / "abc.txt",
            Position(0, 0),
        )

        first = tree.first()
        assert first is not None
        self.assertEqual(first.location.uri, ROOT / "ab.txt")

    def test_longest_prefix_may_be_a_later_group(self) -> None:
        tree = _tree(
            [
                location_at(ROOT / "a.txt", 0, 0, 1),
                location_at(ROOT / "x" / "b.txt", 6, 0, 1),
                location_at(ROOT / "x" / "b.txt", 2, 0, 1),
            ],
            ROOT / "x" / "q.txt",
            Position(0, 0),
        )

        self.assertIs(tree.first(), tree.groups[1].entries[0])

    def test_prefix_ties_keep_first_group(self) -> None:
        tree = _tree(
            [location_at(ROOT / "a.txt", 0, 0, 1), location_at(ROOT / "b.txt", 0, 0, 1)],
            ROOT / "c.txt",
            Position(0, 0),
        )

        self.assertIs(tree.first(), tree.groups[0].entries[0])

    def test_empty_tree_has_no_first(self) -> None:
        self.assertIsNone(_tree([], ROOT / "a.txt", Position(0, 0)).first())


class MoveTests(unittest.TestCase):
    def test_entry_moves_within_group(self) -> None:
        tree = _two_file_tree(Position(0, 0))
        a = tree.groups[0]

        self.assertIs(tree.move(a.entries[0], True), a.entries[1])
        self.assertIs(tree.move(a.entries[2], False), a.entries[1])

    def test_entry_wraps_into_neighbouring_groups(self) -> None:
        tree = _two_file_tree(Position(0, 0))
        a, b = tree.groups

        self.assertIs(tree.move(a.entries[-1], True), b.entries[0])
        self.assertIs(tree.move(b.entries[0], False), a.entries[-1])
        self.assertIs(tree.move(b.entries[-1], True), a.entries[0])
        self.assertIs(tree.move(a.entries[0], False), b.entries[-1])

    def test_group_moves_to_neighbour_boundaries(self) -> None:
        tree = _two_file_tree(Position(0, 0))
        a, b = tree.groups

        self.assertIs(tree.move(a, True), b.entries[0])
        self.assertIs(tree.move(a, False), b.entries[-1])
        self.assertIs(tree.move(b, True), a.entries[0])
        self.assertIs(tree.move(b, False), a.entries[-1])

    def test_single_group_wraps_to_itself(self) -> None:
        tree = _tree(
            [location_at(ROOT / "a.txt", 0, 0, 1), location_at(ROOT / "a.txt", 5, 0, 1)],
            ROOT / "a.txt",
            Position(0, 0),
        )
        (group,) = tree.groups

        self.assertIs(tree.move(group, True), group.entries[0])
        self.assertIs(tree.move(group, False), group.entries[-1])
        self.assertIs(tree.move(group.entries[-1], True), group.entries[0])

    def test_single_entry_tree_moves_to_itself(self) -> None:
        tree = _tree([location_at(ROOT / "a.txt", 0, 0, 1)], ROOT / "a.txt", Position(0, 0))
        entry = tree.groups[0].entries[0]

        self.assertIs(tree.move(entry, True), entry)
        self.assertIs(tree.move(entry, False), entry)

    def test_cyclic_closure_in_both_directions(self) -> None:
        tree = _tree(
            [
                location_at(ROOT / "a.txt", 0, 0, 1),
                location_at(ROOT / "b.txt", 0, 0, 1),
                location_at(ROOT / "b.txt", 1, 0, 1),
                location_at(ROOT / "b.txt", 2, 0, 1),
                location_at(ROOT / "c.txt", 9, 0, 1),
                location_at(ROOT / "d.txt", 0, 0, 1),
                location_at(ROOT / "d.txt", 3, 0, 1),
            ],
            ROOT / "a.txt",
            Position(0, 0),
        )
        total = tree.total
        flattened = list(tree.entries())

        for forward in (True, False):
            for start in flattened:
                visited = []
                current = start
                for _ in range(total):
                    current = tree.move(current, forward)
                    assert current is not None
                    visited.append(current)
                self.assertIs(current, start)
                self.assertEqual({id(entry) for entry in visited}, {id(entry) for entry in flattened})

    def test_forward_walk_follows_tree_order(self) -> None:
        tree = _two_file_tree(Position(0, 0))
        flattened = list(tree.entries())

        current = flattened[0]
        walked = [current]
        for _ in range(len(flattened) - 1):
            current = tree.move(current, True)
            walked.append(current)
        self.assertEqual([id(entry) for entry in walked], [id(entry) for entry in flattened])

    def test_move_on_empty_tree_returns_none(self) -> None:
        other = _tree([location_at(ROOT / "a.txt", 0, 0, 1)], ROOT / "a.txt", Position(0, 0))
        empty = _tree([], ROOT / "a.txt", Position(0, 0))

        self.assertIsNone(empty.move(other.groups[0], True))
        self.assertIsNone(empty.move(other.groups[0].entries[0], False))


if __name__ == "__main__":
    unittest.main()
