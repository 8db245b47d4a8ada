"""Undo entries: structural command inverses and rich-text editing sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from ..model.document import NodeId
from .commands import CommandResult
from .undo import TextChangeOps, UndoStack

LOGGER = logging.getLogger(__name__)


class Change(Protocol):
    """An undoable entry living on an :class:`UndoStack`.

    Each step returns ``True`` when something was undone or redone. The entry
    decides itself whether it leaves its stack, may stay for further steps,
    or hands the call on to the next entry.
    """

    def undo_step(self, ctx: "ChangeContext") -> bool:
        ...

    def redo_step(self, ctx: "ChangeContext") -> bool:
        ...


@dataclass(slots=True)
class ChangeContext:
    """Engine capabilities handed to :class:`Change` entries.

    Attributes:
        stack: The engine's undo stack.
        apply_silent: Applies a command without recording undo history.
        sync_content: Writes external editor content into a node's
            ``content`` prop without recording undo history.
        apply_snapshot: Restores a stored content snapshot the same way.
        current_content: Reads the ``content`` prop a node holds right now.
        undo: Re-enters the engine's undo (used for fall-through).
        redo: Re-enters the engine's redo.
    """

    stack: UndoStack
    apply_silent: Callable[[Any], CommandResult]
    sync_content: Callable[[NodeId, Any], None]
    apply_snapshot: Callable[[NodeId, Any], None]
    current_content: Callable[[NodeId], Any]
    undo: Callable[[], bool]
    redo: Callable[[], bool]


class CommandChange:
    """Undo entry wrapping the inverse of a structural or property command."""

    __slots__ = ("command",)

    def __init__(self, command: Any) -> None:
        self.command = command

    def __repr__(self) -> str:
        return f"CommandChange({self.command!r})"

    def undo_step(self, ctx: ChangeContext) -> bool:
        ctx.stack.pop_undo()
        result = ctx.apply_silent(self.command)
        if not result.ok:
            LOGGER.warning("Dropping undo entry %s: %s", type(self.command).__name__, result.error)
            return ctx.undo()
        if result.inverse is not None:
            ctx.stack.push_redo(CommandChange(result.inverse))
        return True

    def redo_step(self, ctx: ChangeContext) -> bool:
        ctx.stack.pop_redo()
        result = ctx.apply_silent(self.command)
        if not result.ok:
            LOGGER.warning("Dropping redo entry %s: %s", type(self.command).__name__, result.error)
            return ctx.redo()
        if result.inverse is not None:
            ctx.stack.push_undo(CommandChange(result.inverse))
        return True


class TextChange:
    """One rich-text editing session of a single node.

    Undo and redo are delegated step by step to the external editor's own
    history between ``undo_depth_at_start`` and the depth reached when the
    session ended. The end of the session is captured lazily on the first
    undo. When the external editor has gone away, whole-session snapshots
    (``content_before`` / ``content_after``) are restored instead.
    """

    __slots__ = (
        "node_id",
        "ops",
        "content_before",
        "content_after",
        "has_content_after",
        "undo_depth_at_start",
        "undo_depth_at_end",
    )

    def __init__(
        self,
        node_id: NodeId,
        ops: TextChangeOps | None,
        content_before: Any,
        undo_depth_at_start: int,
    ) -> None:
        self.node_id = node_id
        self.ops = ops
        self.content_before = content_before
        self.undo_depth_at_start = undo_depth_at_start
        self.content_after: Any = None
        self.has_content_after = False
        self.undo_depth_at_end: int | None = None

    def __repr__(self) -> str:
        return f"TextChange(node_id={self.node_id!r}, start={self.undo_depth_at_start}, end={self.undo_depth_at_end})"

    def undo_step(self, ctx: ChangeContext) -> bool:
        ops = self.ops
        if ops is None or not ops.is_alive():
            ctx.stack.pop_undo()
            if not self.has_content_after:
                # The node still holds the last synced content of the session.
                self.content_after = ctx.current_content(self.node_id)
                self.has_content_after = True
            ctx.apply_snapshot(self.node_id, self.content_before)
            ctx.stack.push_redo(self)
            return True

        if self.undo_depth_at_end is None:
            self.undo_depth_at_end = ops.undo_depth()
            self.content_after = ops.get_content()
            self.has_content_after = True

        if ops.undo_depth() > self.undo_depth_at_start:
            ops.undo()
            ctx.sync_content(self.node_id, ops.get_content())
            if ops.undo_depth() <= self.undo_depth_at_start:
                ctx.stack.pop_undo()
                ctx.stack.push_redo(self)
            return True

        # Session already exhausted; move on to the previous entry.
        ctx.stack.pop_undo()
        ctx.stack.push_redo(self)
        return ctx.undo()

    def redo_step(self, ctx: ChangeContext) -> bool:
        ops = self.ops
        if ops is None or not ops.is_alive():
            ctx.stack.pop_redo()
            if not self.has_content_after:
                LOGGER.warning("No end snapshot for text session of %s; skipping redo", self.node_id)
                ctx.stack.push_undo(self)
                return ctx.redo()
            ctx.apply_snapshot(self.node_id, self.content_after)
            ctx.stack.push_undo(self)
            return True

        if self.undo_depth_at_end is None and self.has_content_after:
            # Undone on snapshots, then reconnected to a fresh editor.
            ctx.stack.pop_redo()
            ctx.apply_snapshot(self.node_id, self.content_after)
            self._back_to_undo(ctx)
            return True

        if self.undo_depth_at_end is not None and ops.undo_depth() < self.undo_depth_at_end:
            ops.redo()
            ctx.sync_content(self.node_id, ops.get_content())
            if ops.undo_depth() >= self.undo_depth_at_end:
                ctx.stack.pop_redo()
                self._back_to_undo(ctx)
            return True

        ctx.stack.pop_redo()
        self._back_to_undo(ctx)
        return ctx.redo()

    def _back_to_undo(self, ctx: ChangeContext) -> None:
        # Live sessions capture their end again if the user keeps typing.
        self.undo_depth_at_end = None
        self.content_after = None
        self.has_content_after = False
        ctx.stack.push_undo(self)


__all__ = ["Change", "ChangeContext", "CommandChange", "TextChange"]
