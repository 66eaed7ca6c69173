"""Change notifications emitted by the match tree.

Listeners receive either ``TreeChanged`` (a group was removed) or
``GroupChanged`` (one group's entries changed). Delivery is synchronous and in
mutation order.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .model import FileGroup, MatchTree


@dataclass(frozen=True, eq=False)
class TreeChanged:
    tree: MatchTree


@dataclass(frozen=True, eq=False)
class GroupChanged:
    group: FileGroup


ChangeEvent = Union[TreeChanged, GroupChanged]
ChangeListener = Callable[[ChangeEvent], None]


class ChangeEmitter:
    """Synchronous listener list for change events."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            for idx, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[idx]
                    return

        return unsubscribe

    def fire(self, event: ChangeEvent) -> None:
        # Snapshot so listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            listener(event)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


__all__ = [
    "ChangeEmitter",
    "ChangeEvent",
    "ChangeListener",
    "GroupChanged",
    "TreeChanged",
]
