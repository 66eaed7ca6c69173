"""Default location providers.

Combines ripgrep word references and Tree-sitter definition lookup in one
import surface.
"""

from __future__ import annotations

from .implementations import collect_definitions, find_implementations
from .languages import LANGUAGE_BY_SUFFIX, language_for_path
from .references import find_references, search_word_locations, word_at

__all__ = [
    "LANGUAGE_BY_SUFFIX",
    "collect_definitions",
    "find_implementations",
    "find_references",
    "language_for_path",
    "search_word_locations",
    "word_at",
]
