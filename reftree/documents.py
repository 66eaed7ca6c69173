"""Text-document loading for match-tree file groups.

Documents are read off the event loop in a worker thread. The language label
comes from the Pygments lexer registry so previews can be highlighted later.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

PLAIN_TEXT_LANGUAGE = "Text only"


@dataclass(frozen=True)
class TextDocument:
    """Loaded file content plus its detected language."""

    uri: Path
    text: str
    language: str = PLAIN_TEXT_LANGUAGE

    @property
    def lines(self) -> list[str]:
        return split_lines(self.text)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, line: int) -> str:
        """Return zero-based line ``line`` without its terminator, or ``""``."""
        lines = self.lines
        if 0 <= line < len(lines):
            return lines[line]
        return ""


DocumentLoader = Callable[[Path], Awaitable[TextDocument]]


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, the way ripgrep and Tree-sitter number lines.

    A trailing ``\\r`` is dropped from each line; a final terminator does not
    start an extra empty line.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order.

    Attempts UTF-8, UTF-8 with BOM, then latin-1; as a final fallback decodes
    raw bytes with UTF-8 replacement semantics.
    """
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def language_for_path(path: Path, source: str = "") -> str:
    """Return the Pygments lexer name for ``path`` or the plain-text label."""
    try:
        return get_lexer_for_filename(path.name, source).name
    except ClassNotFound:
        return PLAIN_TEXT_LANGUAGE


def open_text_document(uri: Path) -> TextDocument:
    """Blocking document load; ``OSError`` propagates to the caller."""
    text = read_text(uri)
    return TextDocument(uri=uri, text=text, language=language_for_path(uri, text))


async def load_text_document(uri: Path) -> TextDocument:
    """Load ``uri`` in a worker thread."""
    return await asyncio.to_thread(open_text_document, uri)


__all__ = [
    "DocumentLoader",
    "PLAIN_TEXT_LANGUAGE",
    "TextDocument",
    "language_for_path",
    "load_text_document",
    "open_text_document",
    "read_text",
    "split_lines",
]
