"""Dataclasses representing the template document tree and its snapshots."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterator

from ..utils.freeze import deep_freeze

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..engine.registry import ComponentRegistry

NodeId = str
SlotId = str

MODEL_VERSION = 1
ROOT_TYPE = "root"
INHERIT_THEME: Mapping[str, Any] = MappingProxyType({"type": "inherit"})


def new_id() -> str:
    """Return a fresh identifier for a node or slot."""

    return uuid.uuid4().hex


@dataclass(slots=True, frozen=True)
class Node:
    """A typed unit of the document tree; ``type`` selects its registry definition."""

    id: NodeId
    type: str
    slots: tuple[SlotId, ...] = ()
    props: Mapping[str, Any] | None = None
    styles: Mapping[str, Any] | None = None
    style_preset: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "slots", tuple(self.slots))


@dataclass(slots=True, frozen=True)
class Slot:
    """A named attachment point on a node holding an ordered list of child ids."""

    id: SlotId
    node_id: NodeId
    name: str
    children: tuple[NodeId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(slots=True, frozen=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float

    def to_dict(self) -> dict[str, float]:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Margins":
        return cls(
            top=payload["top"],
            right=payload["right"],
            bottom=payload["bottom"],
            left=payload["left"],
        )


@dataclass(slots=True, frozen=True)
class PageSettings:
    """Resolved page layout (format, orientation, margins in mm, background)."""

    format: str = "A4"
    orientation: str = "portrait"
    margins: Margins = field(default_factory=lambda: Margins(20, 20, 20, 20))
    background_color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "format": self.format,
            "orientation": self.orientation,
            "margins": self.margins.to_dict(),
        }
        if self.background_color is not None:
            payload["backgroundColor"] = self.background_color
        return payload

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PageSettings":
        margins = payload.get("margins")
        return cls(
            format=payload.get("format", "A4"),
            orientation=payload.get("orientation", "portrait"),
            margins=Margins.from_mapping(margins) if margins is not None else Margins(20, 20, 20, 20),
            background_color=payload.get("backgroundColor"),
        )


@dataclass(slots=True, frozen=True)
class TemplateDocument:
    """Immutable snapshot of a whole template.

    Every command produces a new instance; earlier snapshots survive only
    inside undo history. ``nodes`` and ``slots`` are keyed by id.
    """

    root: NodeId
    nodes: Mapping[NodeId, Node]
    slots: Mapping[SlotId, Slot]
    model_version: int = MODEL_VERSION
    theme_ref: Mapping[str, Any] = field(default_factory=lambda: INHERIT_THEME)
    document_styles_override: Mapping[str, Any] | None = None
    page_settings_override: Mapping[str, Any] | None = None

    def get_node(self, node_id: NodeId) -> Node | None:
        return self.nodes.get(node_id)

    def get_slot(self, slot_id: SlotId) -> Slot | None:
        return self.slots.get(slot_id)

    def replace(self, **changes: Any) -> "TemplateDocument":
        """Return a copy of the document with ``changes`` applied."""

        return replace(self, **changes)

    def iter_subtree(self, node_id: NodeId) -> Iterator[Node]:
        """Yield ``node_id`` and all of its descendants depth-first."""

        node = self.nodes.get(node_id)
        if node is None:
            return
        yield node
        for slot_id in node.slots:
            slot = self.slots.get(slot_id)
            if slot is None:
                continue
            for child_id in slot.children:
                yield from self.iter_subtree(child_id)


def freeze_document(doc: TemplateDocument) -> TemplateDocument:
    """Return ``doc`` with every map and payload converted to read-only views."""

    nodes: dict[NodeId, Node] = {}
    for node_id, node in doc.nodes.items():
        props = deep_freeze(node.props) if node.props is not None else None
        styles = deep_freeze(node.styles) if node.styles is not None else None
        if props is node.props and styles is node.styles:
            nodes[node_id] = node
        else:
            nodes[node_id] = replace(node, props=props, styles=styles)
    return replace(
        doc,
        nodes=MappingProxyType(nodes),
        slots=MappingProxyType(dict(doc.slots)),
        theme_ref=deep_freeze(doc.theme_ref),
        document_styles_override=deep_freeze(doc.document_styles_override),
        page_settings_override=deep_freeze(doc.page_settings_override),
    )


def create_empty_document(registry: "ComponentRegistry | None" = None) -> TemplateDocument:
    """Return a document holding only a root node with its ``children`` slot."""

    if registry is not None and registry.has(ROOT_TYPE):
        created = registry.create_node(ROOT_TYPE)
        root, slots = created.node, created.slots
    else:
        root_id = new_id()
        slot = Slot(id=new_id(), node_id=root_id, name="children")
        root = Node(id=root_id, type=ROOT_TYPE, slots=(slot.id,))
        slots = (slot,)
    return TemplateDocument(
        root=root.id,
        nodes={root.id: root},
        slots={slot.id: slot for slot in slots},
    )


def validate_document(doc: TemplateDocument, registry: "ComponentRegistry | None" = None) -> list[str]:
    """Return every structural invariant violated by ``doc`` (empty when valid)."""

    problems: list[str] = []
    if doc.root not in doc.nodes:
        problems.append(f"Root node {doc.root} not found")
        return problems

    for node_id, node in doc.nodes.items():
        if node.id != node_id:
            problems.append(f"Node key {node_id} does not match node id {node.id}")
        if registry is not None and not registry.has(node.type):
            problems.append(f"Node {node_id} has unregistered type '{node.type}'")
        for slot_id in node.slots:
            slot = doc.slots.get(slot_id)
            if slot is None:
                problems.append(f"Node {node_id} references missing slot {slot_id}")
            elif slot.node_id != node_id:
                problems.append(f"Slot {slot_id} is listed by {node_id} but owned by {slot.node_id}")

    for slot_id, slot in doc.slots.items():
        if slot.id != slot_id:
            problems.append(f"Slot key {slot_id} does not match slot id {slot.id}")
        owner = doc.nodes.get(slot.node_id)
        if owner is None:
            problems.append(f"Slot {slot_id} belongs to missing node {slot.node_id}")
        elif slot_id not in owner.slots:
            problems.append(f"Slot {slot_id} is not listed by its owner {slot.node_id}")

    seen: set[NodeId] = set()
    stack: list[NodeId] = [doc.root]
    while stack:
        node_id = stack.pop()
        if node_id in seen:
            problems.append(f"Node {node_id} is reachable more than once")
            continue
        seen.add(node_id)
        node = doc.nodes.get(node_id)
        if node is None:
            problems.append(f"Slot child {node_id} does not exist")
            continue
        for slot_id in node.slots:
            slot = doc.slots.get(slot_id)
            if slot is None:
                continue
            for child_id in slot.children:
                child = doc.nodes.get(child_id)
                if (
                    registry is not None
                    and child is not None
                    and not registry.can_contain(node.type, child.type)
                ):
                    problems.append(f"Node type '{child.type}' cannot be placed in '{node.type}'")
                stack.append(child_id)

    unreachable = set(doc.nodes) - seen
    for node_id in sorted(unreachable):
        problems.append(f"Node {node_id} is not connected to root {doc.root}")
    return problems


__all__ = [
    "INHERIT_THEME",
    "MODEL_VERSION",
    "Margins",
    "Node",
    "NodeId",
    "PageSettings",
    "ROOT_TYPE",
    "Slot",
    "SlotId",
    "TemplateDocument",
    "create_empty_document",
    "freeze_document",
    "new_id",
    "validate_document",
]
