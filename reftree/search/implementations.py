"""Definition lookup backing the implementations query.

Candidate files come from a whole-word ripgrep search; each candidate with a
configured grammar is parsed with Tree-sitter and function/class definitions
named like the identifier under the cursor become result locations.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from tree_sitter_language_pack import get_parser

from ..config import SearchSettings
from ..documents import read_text
from ..locations import Location, Position, Range
from ..providers import resolve_workspace_root
from .languages import (
    CLASS_NODE_TYPES,
    DECORATED_NODE_TYPES,
    FUNCTION_NODE_TYPES,
    IDENTIFIER_NODE_TYPES,
    language_for_path,
)
from .references import search_word_locations, word_at


@lru_cache(maxsize=32)
def _load_parser(language_name: str):
    """Return ``(parser, error_message)`` for a grammar name."""
    try:
        return get_parser(language_name), None
    except Exception as exc:
        return None, f"Failed to load Tree-sitter parser for {language_name}: {exc}"


def _name_node(node):
    """Locate the identifier node naming a definition node."""
    for field_name in ("name", "declarator"):
        child = node.child_by_field_name(field_name)
        if child is None:
            continue
        nested = child.child_by_field_name("name")
        if nested is not None:
            return nested
        if child.type in IDENTIFIER_NODE_TYPES:
            return child
        for grandchild in child.named_children:
            if grandchild.type in IDENTIFIER_NODE_TYPES:
                return grandchild
        return child

    for child in node.named_children:
        if child.type in IDENTIFIER_NODE_TYPES:
            return child
    return None


def _point_to_position(line_bytes: list[bytes], point) -> Position:
    row, byte_column = point
    row = int(row)
    raw = line_bytes[row] if 0 <= row < len(line_bytes) else b""
    character = len(raw[: int(byte_column)].decode("utf-8", errors="replace"))
    return Position(row, character)


def collect_definitions(path: Path, name: str) -> tuple[list[Location], str | None]:
    """Return definitions of ``name`` in ``path`` as ``(locations, error_message)``."""
    language_name = language_for_path(path)
    if language_name is None:
        suffix = path.suffix or "<no extension>"
        return [], f"No Tree-sitter grammar configured for {suffix}."

    parser, parser_error = _load_parser(language_name)
    if parser is None:
        return [], parser_error

    try:
        source = read_text(path)
    except OSError as exc:
        return [], f"Failed to read source for definitions: {exc}"
    source_bytes = source.encode("utf-8", errors="replace")
    line_bytes = source_bytes.split(b"\n")

    try:
        tree = parser.parse(source_bytes)
    except Exception as exc:
        return [], f"Tree-sitter parse failed: {exc}"

    locations: list[Location] = []

    def walk(node) -> None:
        if node.type in DECORATED_NODE_TYPES:
            definition = node.child_by_field_name("definition")
            if definition is not None:
                walk(definition)
                return

        if node.type in FUNCTION_NODE_TYPES or node.type in CLASS_NODE_TYPES:
            name_node = _name_node(node)
            if name_node is not None:
                text = source_bytes[name_node.start_byte : name_node.end_byte].decode("utf-8", errors="replace")
                if text == name:
                    locations.append(
                        Location(
                            path,
                            Range(
                                _point_to_position(line_bytes, name_node.start_point),
                                _point_to_position(line_bytes, name_node.end_point),
                            ),
                        )
                    )

        for child in node.named_children:
            walk(child)

    walk(tree.root_node)
    return locations, None


def find_implementations(
    uri: Path,
    position: Position,
    *,
    settings: SearchSettings,
    root: Path | None = None,
) -> list[Location] | None:
    """Implementation provider: definitions of the identifier at ``position``.

    Returns ``None`` when there is no identifier under the cursor or the
    candidate search cannot run.
    """
    try:
        text = read_text(uri)
    except OSError:
        return None
    word = word_at(text, position)
    if word is None:
        return None

    search_root = root if root is not None else resolve_workspace_root(uri)
    candidates, _truncated, error = search_word_locations(search_root, word, settings)
    if error is not None:
        return None

    seen: set[Path] = set()
    locations: list[Location] = []
    for candidate in candidates:
        if candidate.uri in seen:
            continue
        seen.add(candidate.uri)
        found, _error = collect_definitions(candidate.uri, word)
        locations.extend(found)
    return locations
