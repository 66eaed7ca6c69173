"""Public package surface for reftree.

Exports the match-tree model, location types, and query kinds. ``main`` is
imported lazily so the model can be used without loading the CLI.
"""

from __future__ import annotations

from .events import GroupChanged, TreeChanged
from .locations import Location, Position, Range
from .model import FileGroup, MatchEntry, MatchTree
from .providers import ProviderRegistry, QueryKind


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "FileGroup",
    "GroupChanged",
    "Location",
    "MatchEntry",
    "MatchTree",
    "Position",
    "ProviderRegistry",
    "QueryKind",
    "Range",
    "TreeChanged",
    "main",
]
