from __future__ import annotations

import base64
import binascii
import json
import re
import shutil
import subprocess
from pathlib import Path

from ..config import SearchSettings
from ..documents import read_text, split_lines
from ..locations import Location, Position, Range
from ..providers import resolve_workspace_root

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def word_at(text: str, position: Position) -> str | None:
    """Return the identifier under ``position`` (cursor inside or right after it)."""
    lines = split_lines(text)
    if not (0 <= position.line < len(lines)):
        return None
    line = lines[position.line]
    for match in _IDENTIFIER_RE.finditer(line):
        if match.start() <= position.character <= match.end():
            return match.group(0)
    return None


def _char_offset(line_bytes: bytes, byte_offset: int) -> int:
    """Convert a UTF-8 byte offset within one line to a character offset."""
    return len(line_bytes[: max(0, byte_offset)].decode("utf-8", errors="replace"))


def _line_bytes(lines_data: dict) -> bytes:
    """Raw bytes of a ripgrep ``lines`` object.

    Lines that are not valid UTF-8 arrive base64-encoded under ``bytes``
    instead of ``text``.
    """
    text = lines_data.get("text")
    if text is not None:
        return str(text).encode("utf-8")
    encoded = lines_data.get("bytes")
    if not encoded:
        return b""
    try:
        return base64.b64decode(encoded)
    except (binascii.Error, ValueError):
        return b""


def search_word_locations(
    root: Path,
    word: str,
    settings: SearchSettings,
) -> tuple[list[Location], bool, str | None]:
    """Find whole-word occurrences of ``word`` under ``root`` with ripgrep.

    Returns ``(locations, truncated, error_message)``. Locations come back in
    ripgrep order; the match tree sorts them.
    """
    if not word:
        return [], False, None
    if shutil.which("rg") is None:
        return [], False, "rg is not installed."

    root = root.resolve()
    cmd = [
        "rg",
        "--json",
        "--line-number",
        "--word-regexp",
        "--fixed-strings",
        "--case-sensitive",
    ]
    if not settings.skip_gitignored:
        cmd.append("--no-ignore")
    if settings.show_hidden:
        cmd.append("--hidden")
    cmd.extend(["--", word, "."])

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except Exception as exc:
        return [], False, f"failed to run rg: {exc}"

    locations: list[Location] = []
    seen_files: set[Path] = set()
    truncated = False
    stderr_text = ""
    try:
        assert proc.stdout is not None
        for raw in proc.stdout:
            line = raw.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except Exception:
                continue
            if payload.get("type") != "match":
                continue
            data = payload.get("data", {})
            path_data = data.get("path", {})
            path_text = path_data.get("text") if isinstance(path_data, dict) else None
            if not path_text:
                continue
            relative_path = Path(path_text)
            if relative_path.is_absolute() or ".." in relative_path.parts:
                continue
            match_path = root / relative_path

            line_number = int(data.get("line_number") or 0)
            if line_number <= 0:
                line_number = 1
            lines_data = data.get("lines", {})
            line_bytes = _line_bytes(lines_data if isinstance(lines_data, dict) else {})

            submatches = data.get("submatches")
            if not isinstance(submatches, list):
                continue
            if match_path not in seen_files:
                if len(seen_files) >= settings.max_files:
                    truncated = True
                    break
                seen_files.add(match_path)

            for submatch in submatches:
                if not isinstance(submatch, dict):
                    continue
                start = _char_offset(line_bytes, int(submatch.get("start") or 0))
                end = _char_offset(line_bytes, int(submatch.get("end") or 0))
                locations.append(
                    Location(
                        match_path,
                        Range(Position(line_number - 1, start), Position(line_number - 1, end)),
                    )
                )
                if len(locations) >= settings.max_matches:
                    truncated = True
                    break
            if truncated:
                break
    finally:
        if truncated and proc.poll() is None:
            proc.kill()
        _stdout_unused, stderr_text = proc.communicate()

    if proc.returncode not in (0, 1) and not locations:
        err = stderr_text.strip() or f"rg failed with exit code {proc.returncode}"
        return [], truncated, err

    return locations, truncated, None


def find_references(
    uri: Path,
    position: Position,
    *,
    settings: SearchSettings,
    root: Path | None = None,
) -> list[Location] | None:
    """Reference provider: whole-word matches of the identifier at ``position``.

    Returns ``None`` when there is no identifier under the cursor or the
    search cannot run.
    """
    try:
        text = read_text(uri)
    except OSError:
        return None
    word = word_at(text, position)
    if word is None:
        return None
    search_root = root if root is not None else resolve_workspace_root(uri)
    locations, _truncated, error = search_word_locations(search_root, word, settings)
    if error is not None:
        return None
    return locations
