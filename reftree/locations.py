"""Position, range, and location value types.

Locations order by file identifier first, then by range start. The match tree
relies on that order for grouping and for cyclic navigation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based text position."""

    line: int
    character: int

    def is_before(self, other: Position) -> bool:
        return self < other

    def is_after(self, other: Position) -> bool:
        return self > other


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        """Return whether ``position`` lies within the range, both ends inclusive."""
        return not position.is_before(self.start) and not self.end.is_before(position)


@dataclass(frozen=True)
class Location:
    """One span of text inside one file."""

    uri: Path
    range: Range

    @property
    def file_key(self) -> str:
        """Canonical file identifier used for ordering and grouping."""
        return file_key(self.uri)


def file_key(uri: Path) -> str:
    return str(uri)


def location_sort_key(location: Location) -> tuple[str, Position]:
    """Sort key implementing the total location order."""
    return (location.file_key, location.range.start)


def sorted_locations(locations: list[Location]) -> list[Location]:
    """Return locations in tree order; exact ties keep their input order."""
    return sorted(locations, key=location_sort_key)


def location_at(uri: Path, line: int, start: int, end: int | None = None) -> Location:
    """Build a single-line location, ``end`` defaulting to ``start``."""
    stop = start if end is None else end
    return Location(uri, Range(Position(line, start), Position(line, stop)))
