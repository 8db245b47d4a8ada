"""Exception hierarchy for programmer errors raised by the engine.

Domain validation failures (a disallowed child, a missing slot, a cycle) are
never raised; commands report them as :class:`~template_editor.engine.commands.CommandError`
values. The exceptions below signal wiring defects that should crash loudly.
"""

from __future__ import annotations

from typing import Any


class EditorError(RuntimeError):
    """Base class for all engine defects."""


class UnknownComponentError(EditorError, KeyError):
    """Raised when a registry lookup targets an unregistered component type."""

    def __init__(self, component_type: str) -> None:
        super().__init__(f"Unknown component type: {component_type}")
        self.component_type = component_type

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownCommandError(EditorError, TypeError):
    """Raised when a command variant has no handler."""

    def __init__(self, command: Any) -> None:
        label = getattr(command, "type", None) or type(command).__name__
        super().__init__(f"Unknown command type: {label}")
        self.command = command


class StructureError(EditorError):
    """Raised when index helpers detect a cycle or a node detached from the root."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


__all__ = [
    "EditorError",
    "StructureError",
    "UnknownCommandError",
    "UnknownComponentError",
]
