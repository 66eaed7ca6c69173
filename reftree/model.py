"""Match tree: query results grouped by file, with navigation and removal.

The tree owns an ordered list of ``FileGroup`` and each group owns an ordered
list of ``MatchEntry``. Entries keep a plain reference to their group, so a
removed entry still knows where it came from; groups reference the tree weakly.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Union

from .documents import DocumentLoader, TextDocument, load_text_document
from .events import ChangeEmitter, ChangeListener, GroupChanged, TreeChanged
from .locations import Location, Position, file_key, sorted_locations
from .providers import QueryKind

if TYPE_CHECKING:
    from .providers import ProviderRegistry


class MatchEntry:
    """One match location inside a file group."""

    __slots__ = ("location", "group")

    def __init__(self, location: Location, group: FileGroup) -> None:
        self.location = location
        self.group = group

    def __repr__(self) -> str:
        start = self.location.range.start
        return f"MatchEntry({self.location.uri}:{start.line}:{start.character})"


class FileGroup:
    """All matches for one file, in location order."""

    def __init__(self, uri: Path, tree: MatchTree, load_document: DocumentLoader) -> None:
        self.uri = uri
        self.entries: list[MatchEntry] = []
        self._tree_ref = weakref.ref(tree)
        self._load_document = load_document
        self._document: asyncio.Future[TextDocument] | None = None

    @property
    def tree(self) -> MatchTree | None:
        return self._tree_ref()

    @property
    def file_key(self) -> str:
        return file_key(self.uri)

    @property
    def document_requested(self) -> bool:
        return self._document is not None

    def get_document(self, prefetch_next: bool = False) -> asyncio.Future[TextDocument]:
        """Return the memoized document future, starting the load on first call.

        Must be called with a running event loop. With ``prefetch_next`` the
        group that forward navigation visits next starts loading once this
        group's document has loaded successfully. Loader errors are stored in
        the returned future.
        """
        if self._document is None:
            self._document = asyncio.ensure_future(self._load_document(self.uri))
        if prefetch_next:
            tree = self.tree
            following = tree.move(self, True) if tree is not None else None
            if following is not None and not following.group.document_requested:
                following_group = following.group
                self._document.add_done_callback(
                    lambda done: _prefetch_after(done, following_group)
                )
        return self._document

    def __repr__(self) -> str:
        return f"FileGroup({self.uri}, {len(self.entries)} entries)"


def _prefetch_after(done: asyncio.Future[TextDocument], group: FileGroup) -> None:
    """Done-callback starting ``group``'s load after a successful load."""
    if done.cancelled() or done.exception() is not None:
        return
    if group.document_requested:
        return
    group.get_document().add_done_callback(_mark_retrieved)


def _mark_retrieved(done: asyncio.Future[TextDocument]) -> None:
    # The error stays on the future for whoever awaits it next.
    if not done.cancelled():
        done.exception()


class MatchTree:
    """Grouped, sorted query results for one origin file and cursor position."""

    def __init__(
        self,
        kind: QueryKind,
        uri: Path,
        position: Position,
        locations: list[Location],
        document_loader: DocumentLoader = load_text_document,
    ) -> None:
        self.kind = kind
        self.uri = uri
        self.position = position
        self.groups: list[FileGroup] = []
        self._changes = ChangeEmitter()

        last: FileGroup | None = None
        for location in sorted_locations(list(locations)):
            if last is None or last.file_key != location.file_key:
                last = FileGroup(location.uri, self, document_loader)
                self.groups.append(last)
            last.entries.append(MatchEntry(location, last))

    @classmethod
    async def create(
        cls,
        uri: Path,
        position: Position,
        kind: QueryKind,
        registry: ProviderRegistry | None = None,
        document_loader: DocumentLoader = load_text_document,
    ) -> MatchTree | None:
        """Run the location query for ``kind`` and build a tree.

        Returns ``None`` when the provider reports no result; an empty result
        list still produces a (group-less) tree.
        """
        if registry is None:
            from .providers import default_registry

            registry = default_registry()
        locations = await registry.execute(kind, uri, position)
        if locations is None:
            return None
        return cls(kind, uri, position, locations, document_loader=document_loader)

    def on_did_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to tree/group change events; returns an unsubscribe callable."""
        return self._changes.subscribe(listener)

    @property
    def total(self) -> int:
        return sum(len(group.entries) for group in self.groups)

    @property
    def file_key(self) -> str:
        return file_key(self.uri)

    def entries(self) -> Iterator[MatchEntry]:
        for group in self.groups:
            yield from group.entries

    def get(self, uri: Path) -> FileGroup | None:
        key = file_key(uri)
        for group in self.groups:
            if group.file_key == key:
                return group
        return None

    def first(self) -> MatchEntry | None:
        """Pick the entry to reveal right after construction.

        Prefers the match under the cursor, then the first match ending after
        the cursor (or the last one before it) in the origin file, and finally
        the first match of the file whose path shares the longest prefix with
        the origin file.
        """
        if not self.groups:
            return None

        origin_key = self.file_key
        for group in self.groups:
            if group.file_key != origin_key:
                continue
            for entry in group.entries:
                if entry.location.range.contains(self.position):
                    return entry
            last_before: MatchEntry | None = None
            for entry in group.entries:
                if entry.location.range.end.is_after(self.position):
                    return entry
                last_before = entry
            if last_before is not None:
                return last_before
            break

        best = 0
        best_len = _common_prefix_len(self.groups[0].file_key, origin_key)
        for idx in range(1, len(self.groups)):
            value = _common_prefix_len(self.groups[idx].file_key, origin_key)
            if value > best_len:
                best = idx
                best_len = value
        return _head(self.groups[best].entries)

    def move(self, item: TreeItem, forward: bool) -> MatchEntry | None:
        """Step to the neighbouring entry, wrapping across groups and the tree ends.

        A detached group counts as index -1, so stepping forward out of it
        lands on the first group.
        """
        if not self.groups:
            return None
        delta = 1 if forward else -1

        def neighbour(group: FileGroup) -> FileGroup:
            idx = (_index_of(self.groups, group) + delta + len(self.groups)) % len(self.groups)
            return self.groups[idx]

        if isinstance(item, FileGroup):
            target = neighbour(item)
            return _head(target.entries) if forward else _tail(target.entries)

        group = item.group
        idx = _index_of(group.entries, item) + delta
        if idx < 0:
            return _tail(neighbour(group).entries)
        if idx >= len(group.entries):
            return _head(neighbour(group).entries)
        return group.entries[idx]

    def remove(self, item: TreeItem) -> None:
        """Detach ``item`` and notify listeners.

        Emptied groups are detached too, in which case the notification is a
        tree-level change rather than a group-level one.
        """
        if isinstance(item, FileGroup):
            _remove_identity(self.groups, item)
            self._changes.fire(TreeChanged(self))
            return

        group = item.group
        _remove_identity(group.entries, item)
        if not group.entries:
            _remove_identity(self.groups, group)
            self._changes.fire(TreeChanged(self))
        else:
            self._changes.fire(GroupChanged(group))

    def __repr__(self) -> str:
        return f"MatchTree({self.kind.name}, {len(self.groups)} files, {self.total} results)"


TreeItem = Union[FileGroup, MatchEntry]


def _common_prefix_len(a: str, b: str) -> int:
    pos = 0
    while pos < len(a) and pos < len(b) and a[pos] == b[pos]:
        pos += 1
    return pos


def _index_of(items: list, item: object) -> int:
    """Identity-based ``index`` returning ``-1`` when absent."""
    for idx, candidate in enumerate(items):
        if candidate is item:
            return idx
    return -1


def _remove_identity(items: list, item: object) -> None:
    idx = _index_of(items, item)
    if idx >= 0:
        del items[idx]


def _head(items: list[MatchEntry]) -> MatchEntry | None:
    return items[0] if items else None


def _tail(items: list[MatchEntry]) -> MatchEntry | None:
    return items[-1] if items else None


__all__ = ["FileGroup", "MatchEntry", "MatchTree", "TreeItem"]
