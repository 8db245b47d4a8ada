"""Command definitions and their pure apply functions.

Each command:

1. validates its preconditions against the document, indexes and registry,
2. produces a new :class:`TemplateDocument` without touching the old one,
3. returns the inverse command that undoes it.

Validation failures come back as :class:`CommandError`; only a command with
no handler at all raises (:class:`UnknownCommandError`).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Union

from ..model.document import Node, NodeId, Slot, SlotId, TemplateDocument, new_id
from ..utils.freeze import thaw
from .errors import UnknownCommandError
from .indexes import DocumentIndexes, is_ancestor

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .registry import ComponentRegistry, CreatedNode

COLUMNS_TYPE = "columns"
COLUMN_SIZES_PROP = "columnSizes"


# ---------------------------------------------------------------------------
# Command variants
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class InsertNode:
    """Insert ``node`` into ``target_slot_id`` at ``index`` (-1 appends).

    ``slots`` holds the node's own slots plus any descendant slots;
    ``descendants`` holds descendant nodes created or restored with it.
    """

    type: ClassVar[str] = "InsertNode"

    node: Node
    target_slot_id: SlotId
    index: int = -1
    slots: tuple[Slot, ...] = ()
    descendants: tuple[Node, ...] = ()

    @classmethod
    def from_created(cls, created: "CreatedNode", target_slot_id: SlotId, index: int = -1) -> "InsertNode":
        return cls(
            node=created.node,
            target_slot_id=target_slot_id,
            index=index,
            slots=tuple(created.slots),
            descendants=tuple(created.extra_nodes),
        )


@dataclass(slots=True, frozen=True)
class RemoveNode:
    type: ClassVar[str] = "RemoveNode"

    node_id: NodeId


@dataclass(slots=True, frozen=True)
class MoveNode:
    type: ClassVar[str] = "MoveNode"

    node_id: NodeId
    target_slot_id: SlotId
    index: int = -1


@dataclass(slots=True, frozen=True)
class UpdateNodeProps:
    type: ClassVar[str] = "UpdateNodeProps"

    node_id: NodeId
    props: Mapping[str, Any] | None


@dataclass(slots=True, frozen=True)
class UpdateNodeStyles:
    type: ClassVar[str] = "UpdateNodeStyles"

    node_id: NodeId
    styles: Mapping[str, Any] | None


@dataclass(slots=True, frozen=True)
class SetStylePreset:
    type: ClassVar[str] = "SetStylePreset"

    node_id: NodeId
    style_preset: str | None


@dataclass(slots=True, frozen=True)
class UpdateDocumentStyles:
    type: ClassVar[str] = "UpdateDocumentStyles"

    styles: Mapping[str, Any] | None


@dataclass(slots=True, frozen=True)
class UpdatePageSettings:
    type: ClassVar[str] = "UpdatePageSettings"

    settings: Mapping[str, Any] | None


@dataclass(slots=True, frozen=True)
class AddColumnSlot:
    """Append a column slot; the ``restore_*`` fields are filled by undo."""

    type: ClassVar[str] = "AddColumnSlot"

    node_id: NodeId
    size: float = 1
    restore_slot: Slot | None = None
    restore_nodes: tuple[Node, ...] = ()
    restore_slots: tuple[Slot, ...] = ()


@dataclass(slots=True, frozen=True)
class RemoveColumnSlot:
    type: ClassVar[str] = "RemoveColumnSlot"

    node_id: NodeId


@dataclass(slots=True, frozen=True)
class ComponentCommand:
    """Untyped component command, routed by ``type`` to its owning definition."""

    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)


Command = Union[
    InsertNode,
    RemoveNode,
    MoveNode,
    UpdateNodeProps,
    UpdateNodeStyles,
    SetStylePreset,
    UpdateDocumentStyles,
    UpdatePageSettings,
    AddColumnSlot,
    RemoveColumnSlot,
]

STRUCTURAL_COMMANDS: tuple[type, ...] = (InsertNode, RemoveNode, MoveNode, AddColumnSlot, RemoveColumnSlot)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class CommandOk:
    """Successful application: the new document and the command that undoes it."""

    ok: ClassVar[bool] = True

    doc: TemplateDocument
    inverse: Any | None
    structure_changed: bool


@dataclass(slots=True, frozen=True)
class CommandError:
    """Rejected command; the document was not touched."""

    ok: ClassVar[bool] = False

    error: str


CommandResult = Union[CommandOk, CommandError]


def ok(doc: TemplateDocument, inverse: Any | None, structure_changed: bool) -> CommandOk:
    return CommandOk(doc=doc, inverse=inverse, structure_changed=structure_changed)


def err(error: str) -> CommandError:
    return CommandError(error=error)


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


def apply_command(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    command: Any,
    registry: "ComponentRegistry",
) -> CommandResult:
    """Apply ``command`` to ``doc`` and return the outcome.

    Core variants are handled here; any other command whose ``type`` is
    claimed by a component's ``command_types`` is routed to that component's
    ``command_handler``.

    Raises:
        UnknownCommandError: when nothing handles the command.
    """

    handler = _HANDLERS.get(type(command))
    if handler is not None:
        return handler(doc, indexes, command, registry)

    command_type = getattr(command, "type", None)
    if isinstance(command_type, str):
        component_handler = registry.command_handler_for(command_type)
        if component_handler is not None:
            return component_handler(doc, indexes, command)

    raise UnknownCommandError(command)


def collect_subtree(doc: TemplateDocument, node_id: NodeId) -> tuple[list[Node], list[Slot]]:
    """Return every node and slot under (and including) ``node_id`` in pre-order."""

    nodes: list[Node] = []
    slots: list[Slot] = []
    stack: list[NodeId] = [node_id]
    while stack:
        current = stack.pop()
        node = doc.nodes.get(current)
        if node is None:
            continue
        nodes.append(node)
        pending: list[NodeId] = []
        for slot_id in node.slots:
            slot = doc.slots.get(slot_id)
            if slot is None:
                continue
            slots.append(slot)
            pending.extend(slot.children)
        stack.extend(reversed(pending))
    return nodes, slots


def _insert_at(children: tuple[NodeId, ...], node_id: NodeId, index: int) -> tuple[NodeId, ...]:
    items = list(children)
    if index < 0 or index >= len(items):
        items.append(node_id)
    else:
        items.insert(index, node_id)
    return tuple(items)


def _without(mapping: Mapping[str, Any], removed: set[str]) -> dict[str, Any]:
    return {key: value for key, value in mapping.items() if key not in removed}


def _clone(value: Mapping[str, Any] | None) -> dict[str, Any] | None:
    return thaw(value) if value is not None else None


# ---------------------------------------------------------------------------
# InsertNode / RemoveNode / MoveNode
# ---------------------------------------------------------------------------


def _apply_insert_node(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: InsertNode,
    registry: "ComponentRegistry",
) -> CommandResult:
    target_slot = doc.slots.get(cmd.target_slot_id)
    if target_slot is None:
        return err(f"Target slot {cmd.target_slot_id} not found")

    parent = doc.nodes.get(target_slot.node_id)
    if parent is None:
        return err(f"Parent node {target_slot.node_id} not found")

    if not registry.has(cmd.node.type):
        return err(f"Unknown node type '{cmd.node.type}'")

    if not registry.can_contain(parent.type, cmd.node.type):
        return err(f"Node type '{cmd.node.type}' cannot be placed in '{parent.type}'")

    for node in (cmd.node, *cmd.descendants):
        if node.id in doc.nodes:
            return err(f"Node {node.id} already exists")
    for slot in cmd.slots:
        if slot.id in doc.slots:
            return err(f"Slot {slot.id} already exists")

    nodes = dict(doc.nodes)
    nodes[cmd.node.id] = cmd.node
    for node in cmd.descendants:
        nodes[node.id] = node

    slots = dict(doc.slots)
    for slot in cmd.slots:
        slots[slot.id] = slot
    slots[target_slot.id] = replace(
        target_slot, children=_insert_at(target_slot.children, cmd.node.id, cmd.index)
    )

    return ok(doc.replace(nodes=nodes, slots=slots), RemoveNode(node_id=cmd.node.id), True)


def _apply_remove_node(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: RemoveNode,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")
    if cmd.node_id == doc.root:
        return err("Cannot remove root node")

    parent_slot_id = indexes.parent_slot_by_node_id.get(cmd.node_id)
    if parent_slot_id is None:
        return err(f"Node {cmd.node_id} has no parent slot")
    parent_slot = doc.slots.get(parent_slot_id)
    if parent_slot is None:
        return err(f"Parent slot {parent_slot_id} not found")

    removed_nodes, removed_slots = collect_subtree(doc, cmd.node_id)
    removed_node_ids = {n.id for n in removed_nodes}
    removed_slot_ids = {s.id for s in removed_slots}
    index_in_parent = parent_slot.children.index(cmd.node_id)

    nodes = _without(doc.nodes, removed_node_ids)
    slots = _without(doc.slots, removed_slot_ids)
    slots[parent_slot_id] = replace(
        parent_slot, children=tuple(child for child in parent_slot.children if child != cmd.node_id)
    )

    inverse = InsertNode(
        node=node,
        target_slot_id=parent_slot_id,
        index=index_in_parent,
        slots=tuple(removed_slots),
        descendants=tuple(n for n in removed_nodes if n.id != cmd.node_id),
    )
    return ok(doc.replace(nodes=nodes, slots=slots), inverse, True)


def _apply_move_node(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: MoveNode,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")
    if cmd.node_id == doc.root:
        return err("Cannot move root node")

    target_slot = doc.slots.get(cmd.target_slot_id)
    if target_slot is None:
        return err(f"Target slot {cmd.target_slot_id} not found")
    target_parent = doc.nodes.get(target_slot.node_id)
    if target_parent is None:
        return err(f"Target parent node {target_slot.node_id} not found")

    if target_slot.node_id == cmd.node_id:
        return err("Cannot move a node into itself")
    if is_ancestor(target_slot.node_id, cmd.node_id, indexes):
        return err("Cannot move a node into its own descendant (cycle)")

    if not registry.can_contain(target_parent.type, node.type):
        return err(f"Node type '{node.type}' cannot be placed in '{target_parent.type}'")

    current_slot_id = indexes.parent_slot_by_node_id.get(cmd.node_id)
    if current_slot_id is None:
        return err(f"Node {cmd.node_id} has no parent slot")
    current_slot = doc.slots.get(current_slot_id)
    if current_slot is None:
        return err(f"Current slot {current_slot_id} not found")

    current_index = current_slot.children.index(cmd.node_id)
    inverse = MoveNode(node_id=cmd.node_id, target_slot_id=current_slot_id, index=current_index)

    slots = dict(doc.slots)
    remaining = tuple(child for child in current_slot.children if child != cmd.node_id)
    if current_slot_id == cmd.target_slot_id:
        slots[current_slot_id] = replace(current_slot, children=_insert_at(remaining, cmd.node_id, cmd.index))
    else:
        slots[current_slot_id] = replace(current_slot, children=remaining)
        slots[target_slot.id] = replace(
            target_slot, children=_insert_at(target_slot.children, cmd.node_id, cmd.index)
        )

    return ok(doc.replace(slots=slots), inverse, True)


# ---------------------------------------------------------------------------
# Property / style updates
# ---------------------------------------------------------------------------


def _apply_update_node_props(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: UpdateNodeProps,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")

    inverse = UpdateNodeProps(node_id=cmd.node_id, props=_clone(node.props))
    nodes = {**doc.nodes, cmd.node_id: replace(node, props=_clone(cmd.props))}
    return ok(doc.replace(nodes=nodes), inverse, False)


def _apply_update_node_styles(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: UpdateNodeStyles,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")

    inverse = UpdateNodeStyles(node_id=cmd.node_id, styles=_clone(node.styles))
    nodes = {**doc.nodes, cmd.node_id: replace(node, styles=_clone(cmd.styles))}
    return ok(doc.replace(nodes=nodes), inverse, False)


def _apply_set_style_preset(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: SetStylePreset,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")

    inverse = SetStylePreset(node_id=cmd.node_id, style_preset=node.style_preset)
    nodes = {**doc.nodes, cmd.node_id: replace(node, style_preset=cmd.style_preset)}
    return ok(doc.replace(nodes=nodes), inverse, False)


def _apply_update_document_styles(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: UpdateDocumentStyles,
    registry: "ComponentRegistry",
) -> CommandResult:
    inverse = UpdateDocumentStyles(styles=_clone(doc.document_styles_override))
    return ok(doc.replace(document_styles_override=_clone(cmd.styles)), inverse, False)


def _apply_update_page_settings(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: UpdatePageSettings,
    registry: "ComponentRegistry",
) -> CommandResult:
    inverse = UpdatePageSettings(settings=_clone(doc.page_settings_override))
    return ok(doc.replace(page_settings_override=_clone(cmd.settings)), inverse, False)


# ---------------------------------------------------------------------------
# Column slots
# ---------------------------------------------------------------------------


def _column_sizes(node: Node) -> list[Any]:
    props = node.props or {}
    return list(props.get(COLUMN_SIZES_PROP) or ())


def _apply_add_column_slot(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: AddColumnSlot,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")
    if node.type != COLUMNS_TYPE:
        return err(f"{cmd.type} only applies to columns nodes")

    sizes = _column_sizes(node)
    if cmd.restore_slot is not None:
        new_slot = cmd.restore_slot
    else:
        new_slot = Slot(id=new_id(), node_id=cmd.node_id, name=f"column-{len(node.slots)}")
    if new_slot.id in doc.slots:
        return err(f"Slot {new_slot.id} already exists")

    props = {**(node.props or {}), COLUMN_SIZES_PROP: [*sizes, cmd.size]}
    nodes = {**doc.nodes, cmd.node_id: replace(node, slots=(*node.slots, new_slot.id), props=props)}
    slots = {**doc.slots, new_slot.id: new_slot}
    for restored in cmd.restore_nodes:
        nodes[restored.id] = restored
    for restored_slot in cmd.restore_slots:
        slots[restored_slot.id] = restored_slot

    return ok(doc.replace(nodes=nodes, slots=slots), RemoveColumnSlot(node_id=cmd.node_id), True)


def _apply_remove_column_slot(
    doc: TemplateDocument,
    indexes: DocumentIndexes,
    cmd: RemoveColumnSlot,
    registry: "ComponentRegistry",
) -> CommandResult:
    node = doc.nodes.get(cmd.node_id)
    if node is None:
        return err(f"Node {cmd.node_id} not found")
    if node.type != COLUMNS_TYPE:
        return err(f"{cmd.type} only applies to columns nodes")

    sizes = _column_sizes(node)
    if len(sizes) <= 1 or len(node.slots) <= 1:
        return err("Cannot remove the last column")

    last_slot_id = node.slots[-1]
    last_slot = doc.slots.get(last_slot_id)
    if last_slot is None:
        return err(f"Last slot {last_slot_id} not found")

    removed_nodes: list[Node] = []
    removed_slots: list[Slot] = []
    for child_id in last_slot.children:
        child_nodes, child_slots = collect_subtree(doc, child_id)
        removed_nodes.extend(child_nodes)
        removed_slots.extend(child_slots)

    nodes = _without(doc.nodes, {n.id for n in removed_nodes})
    slots = _without(doc.slots, {s.id for s in removed_slots} | {last_slot_id})
    props = {**(node.props or {}), COLUMN_SIZES_PROP: sizes[:-1]}
    nodes[cmd.node_id] = replace(node, slots=node.slots[:-1], props=props)

    inverse = AddColumnSlot(
        node_id=cmd.node_id,
        size=sizes[-1],
        restore_slot=last_slot,
        restore_nodes=tuple(removed_nodes),
        restore_slots=tuple(removed_slots),
    )
    return ok(doc.replace(nodes=nodes, slots=slots), inverse, True)


_Handler = Callable[[TemplateDocument, DocumentIndexes, Any, "ComponentRegistry"], CommandResult]

_HANDLERS: dict[type, _Handler] = {
    InsertNode: _apply_insert_node,
    RemoveNode: _apply_remove_node,
    MoveNode: _apply_move_node,
    UpdateNodeProps: _apply_update_node_props,
    UpdateNodeStyles: _apply_update_node_styles,
    SetStylePreset: _apply_set_style_preset,
    UpdateDocumentStyles: _apply_update_document_styles,
    UpdatePageSettings: _apply_update_page_settings,
    AddColumnSlot: _apply_add_column_slot,
    RemoveColumnSlot: _apply_remove_column_slot,
}


__all__ = [
    "AddColumnSlot",
    "COLUMNS_TYPE",
    "COLUMN_SIZES_PROP",
    "Command",
    "CommandError",
    "ComponentCommand",
    "CommandOk",
    "CommandResult",
    "InsertNode",
    "MoveNode",
    "RemoveColumnSlot",
    "RemoveNode",
    "STRUCTURAL_COMMANDS",
    "SetStylePreset",
    "UpdateDocumentStyles",
    "UpdateNodeProps",
    "UpdateNodeStyles",
    "UpdatePageSettings",
    "apply_command",
    "collect_subtree",
    "err",
    "ok",
]
