"""Location-query providers keyed by query kind.

A provider is a plain callable ``(uri, position) -> list[Location] | None``.
``None`` means the query is unsupported for that position; an empty list is a
valid "no matches" answer. The registry runs providers in a worker thread so
ripgrep and parser work stays off the event loop.
"""

from __future__ import annotations

import asyncio
import subprocess
from collections.abc import Callable
from enum import Enum
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from .locations import Location, Position

if TYPE_CHECKING:
    from .config import SearchSettings


class QueryKind(str, Enum):
    REFERENCES = "reftree.executeReferenceProvider"
    IMPLEMENTATIONS = "reftree.executeImplementationProvider"

    @property
    def label(self) -> str:
        return "references" if self is QueryKind.REFERENCES else "implementations"


LocationProvider = Callable[[Path, Position], "list[Location] | None"]


class ProviderRegistry:
    """Maps query kinds to location providers."""

    def __init__(self) -> None:
        self._providers: dict[QueryKind, LocationProvider] = {}

    def register(self, kind: QueryKind, provider: LocationProvider) -> None:
        """Install ``provider`` for ``kind``, replacing any previous one."""
        self._providers[kind] = provider

    def provider_for(self, kind: QueryKind) -> LocationProvider | None:
        return self._providers.get(kind)

    async def execute(self, kind: QueryKind, uri: Path, position: Position) -> list[Location] | None:
        """Run the provider for ``kind`` once; ``None`` when no provider/result."""
        provider = self._providers.get(kind)
        if provider is None:
            return None
        result = await asyncio.to_thread(provider, uri, position)
        if result is None:
            return None
        return list(result)


def resolve_workspace_root(path: Path, timeout_seconds: float = 0.5) -> Path:
    """Return the git top-level for ``path``, else its containing directory.

    Probing failures (git missing, not a repo, timeout) fall back silently.
    """
    target = path.resolve()
    directory = target if target.is_dir() else target.parent
    try:
        proc = subprocess.run(
            ["git", "-C", str(directory), "rev-parse", "--show-toplevel"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except Exception:
        return directory

    if proc.returncode != 0:
        return directory
    top_level = proc.stdout.strip()
    if not top_level:
        return directory
    return Path(top_level).resolve()


def default_registry(settings: SearchSettings | None = None, root: Path | None = None) -> ProviderRegistry:
    """Registry wired with the ripgrep/tree-sitter providers.

    ``settings`` defaults to the persisted search settings. ``root`` pins the
    search root; otherwise each query resolves it from the queried file.
    """
    from .config import load_search_settings
    from .search.implementations import find_implementations
    from .search.references import find_references

    active = settings if settings is not None else load_search_settings()
    registry = ProviderRegistry()
    registry.register(QueryKind.REFERENCES, partial(find_references, settings=active, root=root))
    registry.register(QueryKind.IMPLEMENTATIONS, partial(find_implementations, settings=active, root=root))
    return registry


__all__ = [
    "LocationProvider",
    "ProviderRegistry",
    "QueryKind",
    "default_registry",
    "resolve_workspace_root",
]
