"""Formatting helpers for file-group and match rows."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .config import DEFAULT_STYLE
from .documents import TextDocument
from .model import FileGroup, MatchEntry, MatchTree

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
PREVIEW_MAX_CHARS = 160
GROUP_COLOR = "\033[1;36m"
COUNT_COLOR = "\033[90m"
RESET = "\033[0m"


def sanitize_terminal_text(text: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(text) is None:
        return text
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", text)


def preview_text(line: str, max_chars: int = PREVIEW_MAX_CHARS) -> str:
    """Strip, de-tab, and truncate one source line for a match row."""
    clean = sanitize_terminal_text(line.rstrip("\r\n").replace("\t", "    ").strip())
    if len(clean) <= max_chars:
        return clean
    return clean[: max(1, max_chars - 3)] + "..."


@lru_cache(maxsize=16)
def _formatter_for_style(style: str) -> TerminalFormatter:
    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = DEFAULT_STYLE
    return TerminalFormatter(style=style)


def highlight_preview(text: str, path: Path, style: str = DEFAULT_STYLE) -> str:
    """ANSI-highlight a single preview line using the lexer for ``path``."""
    try:
        lexer = get_lexer_for_filename(path.name, text)
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(text, lexer, _formatter_for_style(style)).rstrip("\n")


def display_path(path: Path, root: Path | None) -> str:
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return str(path)


def format_group_row(group: FileGroup, root: Path | None = None, no_color: bool = False) -> str:
    """Render a file header row: path plus match count."""
    name = display_path(group.uri, root)
    count = f"({len(group.entries)})"
    if no_color:
        return f"{name} {count}"
    return f"{GROUP_COLOR}{name}{RESET} {COUNT_COLOR}{count}{RESET}"


def format_entry_row(
    entry: MatchEntry,
    document: TextDocument | None,
    current: bool = False,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> str:
    """Render one match row as ``L<line>:<col>  <preview>`` (1-based)."""
    start = entry.location.range.start
    marker = "> " if current else "  "
    label = f"L{start.line + 1}:{start.character + 1}"
    text = preview_text(document.line_at(start.line)) if document is not None else ""
    if text and not no_color:
        text = highlight_preview(text, entry.location.uri, style)
    return f"{marker}{label}  {text}".rstrip()


def format_summary(tree: MatchTree) -> str:
    total = tree.total
    files = len(tree.groups)
    results = "result" if total == 1 else "results"
    file_word = "file" if files == 1 else "files"
    return f"{total} {results} in {files} {file_word}"


def render_tree(
    tree: MatchTree,
    documents: dict[Path, TextDocument],
    root: Path | None = None,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> list[str]:
    """Render the whole tree, marking the entry ``first()`` resolves to."""
    current = tree.first()
    rows: list[str] = []
    for group in tree.groups:
        rows.append(format_group_row(group, root, no_color=no_color))
        document = documents.get(group.uri)
        for entry in group.entries:
            rows.append(
                format_entry_row(
                    entry,
                    document,
                    current=entry is current,
                    style=style,
                    no_color=no_color,
                )
            )
    rows.append(format_summary(tree))
    return rows
