"""Expression evaluation helpers for previews and inspector dialogs.

The expression language itself is pluggable: anything implementing
:class:`ExpressionEvaluator` can be handed to the helpers below. The default
:class:`SimplePathEvaluator` understands dotted paths with ``[index]``
access (``customer.address.city``, ``items[0].name``), which covers what
inline chips usually display.

Python has no ``undefined``; a missing path and an explicit ``null`` both
come back as ``None``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

LOGGER = logging.getLogger(__name__)

FORMAT_PREVIEW_MAX_LENGTH = 120
EMPTY_EXPRESSION_ERROR = "Expression is empty"


class ExpressionSyntaxError(ValueError):
    """Raised by evaluators when an expression cannot be parsed."""


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Evaluation capability consumed by the preview helpers."""

    def parse(self, expression: str) -> Any:
        """Parse ``expression`` without evaluating it; raise on bad syntax."""

    async def evaluate(self, expression: str, data: Any) -> Any:
        """Evaluate ``expression`` against ``data``."""


_IDENT = r"[A-Za-z_$][\w$]*"
_SEGMENT = rf"{_IDENT}(?:\[\d+\])*"
_PATH_PATTERN = re.compile(rf"^{_SEGMENT}(?:\.{_SEGMENT})*$")
_TOKEN_PATTERN = re.compile(rf"({_IDENT})|\[(\d+)\]")


class SimplePathEvaluator:
    """Resolve dotted paths with list indexing against mappings and sequences."""

    def parse(self, expression: str) -> list[str | int]:
        text = expression.strip()
        if not _PATH_PATTERN.match(text):
            raise ExpressionSyntaxError(f"Invalid path expression: {expression!r}")
        tokens: list[str | int] = []
        for name, index in _TOKEN_PATTERN.findall(text):
            tokens.append(name if name else int(index))
        return tokens

    async def evaluate(self, expression: str, data: Any) -> Any:
        current = data
        for token in self.parse(expression):
            if isinstance(token, int):
                if not isinstance(current, Sequence) or isinstance(current, (str, bytes)):
                    return None
                if token >= len(current):
                    return None
                current = current[token]
            else:
                if not isinstance(current, Mapping):
                    return None
                current = current.get(token)
            if current is None:
                return None
        return current


@dataclass(slots=True, frozen=True)
class ExpressionResult:
    """Outcome of :func:`try_evaluate_expression`; ``error`` is set when ``ok`` is false."""

    ok: bool
    value: Any = None
    error: str | None = None


_DEFAULT_EVALUATOR = SimplePathEvaluator()


async def evaluate_expression(
    expression: str,
    data: Any,
    evaluator: ExpressionEvaluator | None = None,
) -> Any:
    """Evaluate ``expression``; empty input and evaluation errors give ``None``."""

    trimmed = expression.strip()
    if not trimmed:
        return None
    engine = evaluator or _DEFAULT_EVALUATOR
    try:
        return await engine.evaluate(trimmed, data)
    except Exception:  # evaluator failures must not reach the caller
        LOGGER.debug("Expression %r failed to evaluate", trimmed, exc_info=True)
        return None


async def try_evaluate_expression(
    expression: str,
    data: Any,
    evaluator: ExpressionEvaluator | None = None,
) -> ExpressionResult:
    """Evaluate ``expression`` and report parse/evaluation errors instead of hiding them."""

    trimmed = expression.strip()
    if not trimmed:
        return ExpressionResult(ok=False, error=EMPTY_EXPRESSION_ERROR)
    engine = evaluator or _DEFAULT_EVALUATOR
    try:
        value = await engine.evaluate(trimmed, data)
    except Exception as exc:  # reported to the dialog, never raised
        return ExpressionResult(ok=False, error=str(exc) or type(exc).__name__)
    return ExpressionResult(ok=True, value=value)


def _format_scalar(value: bool | int | float) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_resolved_value(value: Any) -> str | None:
    """Format a value for an inline chip; ``None`` means show the raw expression."""

    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (bool, int, float)):
        return _format_scalar(value)
    return None


def format_for_preview(value: Any) -> str:
    """Always-readable rendering for preview panels; long JSON is truncated."""

    if value is None:
        return "null"
    if isinstance(value, str):
        return value if value else "(empty string)"
    if isinstance(value, (bool, int, float)):
        return _format_scalar(value)
    try:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)
    if len(text) > FORMAT_PREVIEW_MAX_LENGTH:
        return text[:FORMAT_PREVIEW_MAX_LENGTH] + "…"
    return text


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def validate_array_result(value: Any) -> str | None:
    """Return an error message unless ``value`` is a list (``None`` passes)."""

    if value is None or isinstance(value, (list, tuple)):
        return None
    return f"Loop expression must evaluate to an array, got {_type_name(value)}: {format_for_preview(value)}"


def validate_boolean_result(value: Any) -> str | None:
    """Return an error message unless ``value`` is a boolean (``None`` passes)."""

    if value is None or isinstance(value, bool):
        return None
    return f"Condition must evaluate to a boolean, got {_type_name(value)}: {format_for_preview(value)}"


def is_valid_expression(expression: str, evaluator: ExpressionEvaluator | None = None) -> bool:
    """Parse-only syntax check."""

    trimmed = expression.strip()
    if not trimmed:
        return False
    engine = evaluator or _DEFAULT_EVALUATOR
    try:
        engine.parse(trimmed)
    except Exception:  # any parser failure means the expression is invalid
        LOGGER.debug("Expression %r failed to parse", trimmed, exc_info=True)
        return False
    return True


__all__ = [
    "EMPTY_EXPRESSION_ERROR",
    "ExpressionEvaluator",
    "ExpressionResult",
    "ExpressionSyntaxError",
    "FORMAT_PREVIEW_MAX_LENGTH",
    "SimplePathEvaluator",
    "evaluate_expression",
    "format_for_preview",
    "format_resolved_value",
    "is_valid_expression",
    "try_evaluate_expression",
    "validate_array_result",
    "validate_boolean_result",
]
