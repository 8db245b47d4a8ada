"""Bounded undo/redo history."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .changes import Change

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


@runtime_checkable
class TextChangeOps(Protocol):
    """Callbacks into an external rich-text editor's own history.

    Created by the text editing component; the engine never looks past this
    surface.
    """

    def is_alive(self) -> bool:
        """Whether the external editor is still mounted."""

    def undo_depth(self) -> int:
        """Current depth of the external editor's undo history."""

    def undo(self) -> bool:
        ...

    def redo(self) -> bool:
        ...

    def get_content(self) -> Any:
        """Current content of the external editor as JSON-like data."""


class UndoStack:
    """Two LIFO stacks of :class:`Change` entries with a depth cap on undo."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._max_depth = max_depth
        self._undo: list[Change] = []
        self._redo: list[Change] = []

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def push(self, entry: "Change") -> None:
        """Record a new user action; invalidates the redo history."""

        self._undo.append(entry)
        self._redo.clear()
        self._trim()

    def push_undo(self, entry: "Change") -> None:
        """Push onto the undo stack without clearing redo (used while redoing)."""

        self._undo.append(entry)
        self._trim()

    def push_redo(self, entry: "Change") -> None:
        self._redo.append(entry)

    def pop_undo(self) -> "Change | None":
        return self._undo.pop() if self._undo else None

    def pop_redo(self) -> "Change | None":
        return self._redo.pop() if self._redo else None

    def peek_undo(self) -> "Change | None":
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> "Change | None":
        return self._redo[-1] if self._redo else None

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def undo_entries(self) -> Iterator["Change"]:
        return iter(tuple(self._undo))

    def redo_entries(self) -> Iterator["Change"]:
        return iter(tuple(self._redo))

    def __len__(self) -> int:
        return len(self._undo)

    def _trim(self) -> None:
        overflow = len(self._undo) - self._max_depth
        if overflow > 0:
            del self._undo[:overflow]
            LOGGER.debug("Undo history trimmed by %s entries", overflow)


__all__ = ["DEFAULT_MAX_DEPTH", "TextChangeOps", "UndoStack"]
