"""Save/load helpers for the persisted template document format.

The persisted shape mirrors :class:`~template_editor.model.TemplateDocument`
with camelCase keys::

    {
      "modelVersion": 1,
      "root": "<node id>",
      "nodes": {"<id>": {"id", "type", "slots", "props"?, "styles"?, "stylePreset"?}},
      "slots": {"<id>": {"id", "nodeId", "name", "children"}},
      "themeRef": {"type": "inherit"} | {"type": "override", "themeId": "..."},
      "documentStylesOverride"?: {...},
      "pageSettingsOverride"?: {...}
    }

Payloads are checked against :data:`DOCUMENT_SCHEMA` before any model object
is built. Documents written by another ``modelVersion`` are rejected; there is
no migration.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, Iterable

import jsonschema

from .model.document import (
    INHERIT_THEME,
    MODEL_VERSION,
    Node,
    Slot,
    TemplateDocument,
    validate_document,
)
from .utils.freeze import thaw

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .engine.registry import ComponentRegistry

LOGGER = logging.getLogger(__name__)

MAX_SCHEMA_ERRORS = 25

_ID = {"type": "string", "minLength": 1}
_OPTIONAL_OBJECT = {"type": ["object", "null"]}

DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "TemplateDocument",
    "type": "object",
    "required": ["modelVersion", "root", "nodes", "slots"],
    "properties": {
        "modelVersion": {"type": "integer", "minimum": 1},
        "root": _ID,
        "nodes": {"type": "object", "additionalProperties": {"$ref": "#/$defs/node"}},
        "slots": {"type": "object", "additionalProperties": {"$ref": "#/$defs/slot"}},
        "themeRef": {"$ref": "#/$defs/themeRef"},
        "documentStylesOverride": _OPTIONAL_OBJECT,
        "pageSettingsOverride": _OPTIONAL_OBJECT,
    },
    "$defs": {
        "node": {
            "type": "object",
            "required": ["id", "type", "slots"],
            "properties": {
                "id": _ID,
                "type": _ID,
                "slots": {"type": "array", "items": _ID},
                "props": _OPTIONAL_OBJECT,
                "styles": _OPTIONAL_OBJECT,
                "stylePreset": {"type": ["string", "null"]},
            },
        },
        "slot": {
            "type": "object",
            "required": ["id", "nodeId", "name", "children"],
            "properties": {
                "id": _ID,
                "nodeId": _ID,
                "name": {"type": "string"},
                "children": {"type": "array", "items": _ID},
            },
        },
        "themeRef": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "type": {"enum": ["inherit", "override"]},
                "themeId": {"type": "string"},
            },
            "if": {"properties": {"type": {"const": "override"}}},
            "then": {"required": ["type", "themeId"]},
        },
    },
}


class DocumentFormatError(ValueError):
    """Raised when a payload does not have the persisted document shape."""

    def __init__(self, message: str, problems: Iterable[str] = ()) -> None:
        self.problems = list(problems)
        detail = message if not self.problems else f"{message}: {'; '.join(self.problems)}"
        super().__init__(detail)


class UnsupportedModelVersionError(DocumentFormatError):
    """Raised for documents written by a different ``modelVersion``."""

    def __init__(self, found: Any, expected: int = MODEL_VERSION) -> None:
        self.found = found
        self.expected = expected
        super().__init__(f"Unsupported modelVersion {found!r} (expected {expected})")


_VALIDATOR = jsonschema.Draft202012Validator(DOCUMENT_SCHEMA)


def validate_payload(payload: Any) -> list[str]:
    """Return schema problems for ``payload`` (empty when the shape is valid)."""

    problems: list[str] = []
    for issue in sorted(_VALIDATOR.iter_errors(payload), key=lambda e: [str(part) for part in e.absolute_path]):
        path = _format_schema_path(issue.absolute_path)
        problems.append(f"{path}: {issue.message}" if path else issue.message)
        if len(problems) >= MAX_SCHEMA_ERRORS:
            problems.append("Too many validation errors; stopping early.")
            break
    return problems


def _format_schema_path(path: Iterable[Any]) -> str:
    parts: list[str] = []
    for part in path:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        elif parts:
            parts.append(f".{part}")
        else:
            parts.append(str(part))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Model <-> payload
# ---------------------------------------------------------------------------
def node_to_dict(node: Node) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": node.id, "type": node.type, "slots": list(node.slots)}
    if node.props is not None:
        payload["props"] = thaw(node.props)
    if node.styles is not None:
        payload["styles"] = thaw(node.styles)
    if node.style_preset is not None:
        payload["stylePreset"] = node.style_preset
    return payload


def slot_to_dict(slot: Slot) -> dict[str, Any]:
    return {"id": slot.id, "nodeId": slot.node_id, "name": slot.name, "children": list(slot.children)}


def document_to_dict(doc: TemplateDocument) -> dict[str, Any]:
    """Return the JSON-ready payload for ``doc`` (plain dicts and lists only)."""

    payload: dict[str, Any] = {
        "modelVersion": doc.model_version,
        "root": doc.root,
        "nodes": {node_id: node_to_dict(node) for node_id, node in doc.nodes.items()},
        "slots": {slot_id: slot_to_dict(slot) for slot_id, slot in doc.slots.items()},
        "themeRef": thaw(doc.theme_ref),
    }
    if doc.document_styles_override is not None:
        payload["documentStylesOverride"] = thaw(doc.document_styles_override)
    if doc.page_settings_override is not None:
        payload["pageSettingsOverride"] = thaw(doc.page_settings_override)
    return payload


def document_from_dict(
    payload: Any,
    registry: "ComponentRegistry | None" = None,
    *,
    check_structure: bool = False,
) -> TemplateDocument:
    """Build a document from a persisted payload.

    Raises:
        UnsupportedModelVersionError: when ``modelVersion`` differs from
            :data:`MODEL_VERSION`.
        DocumentFormatError: when the payload fails the schema, or when
            ``check_structure`` is set and the tree breaks a document
            invariant.
    """

    if not isinstance(payload, Mapping):
        raise DocumentFormatError(f"Expected a JSON object, got {type(payload).__name__}")

    version = payload.get("modelVersion")
    if isinstance(version, int) and not isinstance(version, bool) and version != MODEL_VERSION:
        raise UnsupportedModelVersionError(version)

    problems = validate_payload(payload)
    if problems:
        raise DocumentFormatError("Invalid document payload", problems)

    nodes = {
        node_id: Node(
            id=raw["id"],
            type=raw["type"],
            slots=tuple(raw["slots"]),
            props=raw.get("props"),
            styles=raw.get("styles"),
            style_preset=raw.get("stylePreset"),
        )
        for node_id, raw in payload["nodes"].items()
    }
    slots = {
        slot_id: Slot(id=raw["id"], node_id=raw["nodeId"], name=raw["name"], children=tuple(raw["children"]))
        for slot_id, raw in payload["slots"].items()
    }
    doc = TemplateDocument(
        root=payload["root"],
        nodes=nodes,
        slots=slots,
        model_version=version,
        theme_ref=payload.get("themeRef") or INHERIT_THEME,
        document_styles_override=payload.get("documentStylesOverride"),
        page_settings_override=payload.get("pageSettingsOverride"),
    )

    if check_structure:
        structural = validate_document(doc, registry)
        if structural:
            raise DocumentFormatError("Invalid document structure", structural)
    LOGGER.debug("Loaded document with %d nodes and %d slots", len(nodes), len(slots))
    return doc


def dumps(doc: TemplateDocument, *, indent: int | None = 2) -> str:
    return json.dumps(document_to_dict(doc), indent=indent, ensure_ascii=False)


def loads(
    text: str,
    registry: "ComponentRegistry | None" = None,
    *,
    check_structure: bool = False,
) -> TemplateDocument:
    """Parse JSON ``text`` into a document; see :func:`document_from_dict`."""

    try:
        payload = json.loads(text)
    except JSONDecodeError as exc:
        raise DocumentFormatError(f"Invalid JSON at line {exc.lineno}: {exc.msg}") from exc
    return document_from_dict(payload, registry, check_structure=check_structure)


__all__ = [
    "DOCUMENT_SCHEMA",
    "DocumentFormatError",
    "UnsupportedModelVersionError",
    "document_from_dict",
    "document_to_dict",
    "dumps",
    "loads",
    "node_to_dict",
    "slot_to_dict",
    "validate_payload",
]
