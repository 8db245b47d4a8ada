"""Table block: a grid of ``cell-{r}-{c}`` slots with its own row commands."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from ..engine.commands import CommandResult, collect_subtree, err, ok
from ..engine.indexes import DocumentIndexes
from ..engine.registry import AllowedChildren, ComponentDefinition, InspectorField, SlotTemplate
from ..model.document import Node, NodeId, Slot, SlotId, TemplateDocument, new_id
from ..utils.freeze import thaw
from .basic import LAYOUT_STYLES

TABLE_TYPE = "table"
TABLE_DEFAULT_PROPS: Mapping[str, Any] = {
    "rows": 2,
    "columns": 2,
    "columnWidths": [50, 50],
    "borderStyle": "all",
    "headerRows": 0,
    "merges": [],
}

_CELL_NAME = re.compile(r"^cell-(\d+)-(\d+)$")


def cell_slot_name(row: int, col: int) -> str:
    return f"cell-{row}-{col}"


def parse_cell_name(name: str) -> tuple[int, int] | None:
    match = _CELL_NAME.match(name)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


@dataclass(slots=True, frozen=True)
class AddTableRow:
    """Insert a row at ``position``; ``restore_*`` fields are filled by undo."""

    type: ClassVar[str] = "AddTableRow"

    node_id: NodeId
    position: int
    restore_slots: tuple[Slot, ...] = ()
    restore_nodes: tuple[Node, ...] = ()
    restore_child_slots: tuple[Slot, ...] = ()
    restore_slot_order: tuple[SlotId, ...] = ()
    restore_props: Mapping[str, Any] | None = None


@dataclass(slots=True, frozen=True)
class RemoveTableRow:
    type: ClassVar[str] = "RemoveTableRow"

    node_id: NodeId
    position: int


@dataclass(slots=True, frozen=True)
class SetTableHeaderRows:
    type: ClassVar[str] = "SetTableHeaderRows"

    node_id: NodeId
    header_rows: int


TABLE_COMMAND_TYPES = (AddTableRow.type, RemoveTableRow.type, SetTableHeaderRows.type)


def shift_merges_for_row_insert(merges: list[dict[str, Any]], position: int) -> list[dict[str, Any]]:
    shifted: list[dict[str, Any]] = []
    for merge in merges:
        if merge["row"] >= position:
            shifted.append({**merge, "row": merge["row"] + 1})
        elif merge["row"] + merge["rowSpan"] > position:
            shifted.append({**merge, "rowSpan": merge["rowSpan"] + 1})
        else:
            shifted.append(dict(merge))
    return shifted


def shift_merges_for_row_remove(merges: list[dict[str, Any]], position: int) -> list[dict[str, Any]]:
    """Shift merges after removing row ``position``; single-row merges on it are dropped."""

    shifted: list[dict[str, Any]] = []
    for merge in merges:
        end = merge["row"] + merge["rowSpan"] - 1
        if merge["row"] > position:
            shifted.append({**merge, "row": merge["row"] - 1})
        elif end < position:
            shifted.append(dict(merge))
        elif merge["row"] == position and merge["rowSpan"] == 1:
            continue
        elif merge["rowSpan"] - 1 > 0:
            shifted.append({**merge, "rowSpan": merge["rowSpan"] - 1})
    return shifted


def _table_props(node: Node) -> dict[str, Any]:
    props = thaw(node.props) if node.props is not None else {}
    return {
        "rows": props.get("rows", 0),
        "columns": props.get("columns", 0),
        "headerRows": props.get("headerRows", 0),
        "merges": list(props.get("merges") or []),
    }


def _slots_by_name(node: Node, doc: TemplateDocument) -> dict[str, Slot]:
    named: dict[str, Slot] = {}
    for slot_id in node.slots:
        slot = doc.slots.get(slot_id)
        if slot is not None:
            named[slot.name] = slot
    return named


def _table_node(doc: TemplateDocument, node_id: NodeId, command_type: str) -> Node | str:
    node = doc.nodes.get(node_id)
    if node is None:
        return f"Node {node_id} not found"
    if node.type != TABLE_TYPE:
        return f"{command_type} only applies to table nodes"
    return node


def _apply_add_table_row(doc: TemplateDocument, cmd: AddTableRow) -> CommandResult:
    node = _table_node(doc, cmd.node_id, cmd.type)
    if isinstance(node, str):
        return err(node)

    tp = _table_props(node)
    if cmd.position < 0 or cmd.position > tp["rows"]:
        return err(f"Invalid row position {cmd.position}")

    named = _slots_by_name(node, doc)
    slots = dict(doc.slots)
    nodes = dict(doc.nodes)
    slot_ids = list(node.slots)

    # Highest row first so renamed slots never collide.
    for row in range(tp["rows"] - 1, cmd.position - 1, -1):
        for col in range(tp["columns"]):
            slot = named.get(cell_slot_name(row, col))
            if slot is not None:
                slots[slot.id] = replace(slot, name=cell_slot_name(row + 1, col))

    if cmd.restore_slots:
        for slot in cmd.restore_slots:
            slots[slot.id] = slot
            if slot.id not in slot_ids:
                slot_ids.append(slot.id)
        for restored in cmd.restore_nodes:
            nodes[restored.id] = restored
        for child_slot in cmd.restore_child_slots:
            slots[child_slot.id] = child_slot
    else:
        for col in range(tp["columns"]):
            slot = Slot(id=new_id(), node_id=cmd.node_id, name=cell_slot_name(cmd.position, col))
            slots[slot.id] = slot
            slot_ids.append(slot.id)

    if cmd.restore_slot_order and set(cmd.restore_slot_order) == set(slot_ids):
        slot_ids = list(cmd.restore_slot_order)

    if cmd.restore_props is not None:
        props = thaw(cmd.restore_props)
    else:
        # A row inserted inside the header grows the header.
        header_rows = tp["headerRows"] + 1 if cmd.position < tp["headerRows"] else tp["headerRows"]
        props = {
            **(thaw(node.props) if node.props is not None else {}),
            "rows": tp["rows"] + 1,
            "merges": shift_merges_for_row_insert(tp["merges"], cmd.position),
            "headerRows": header_rows,
        }

    nodes[cmd.node_id] = replace(node, slots=tuple(slot_ids), props=props)
    inverse = RemoveTableRow(node_id=cmd.node_id, position=cmd.position)
    return ok(doc.replace(nodes=nodes, slots=slots), inverse, True)


def _apply_remove_table_row(doc: TemplateDocument, cmd: RemoveTableRow) -> CommandResult:
    node = _table_node(doc, cmd.node_id, cmd.type)
    if isinstance(node, str):
        return err(node)

    tp = _table_props(node)
    if tp["rows"] <= 1:
        return err("Cannot remove the last row")
    if cmd.position < 0 or cmd.position >= tp["rows"]:
        return err(f"Invalid row position {cmd.position}")

    named = _slots_by_name(node, doc)
    slots = dict(doc.slots)
    nodes = dict(doc.nodes)
    removed_slots: list[Slot] = []
    removed_nodes: list[Node] = []
    removed_child_slots: list[Slot] = []

    for col in range(tp["columns"]):
        slot = named.get(cell_slot_name(cmd.position, col))
        if slot is None:
            continue
        removed_slots.append(slot)
        for child_id in slot.children:
            child_nodes, child_slots = collect_subtree(doc, child_id)
            removed_nodes.extend(child_nodes)
            removed_child_slots.extend(child_slots)
        del slots[slot.id]

    for removed in removed_nodes:
        nodes.pop(removed.id, None)
    for child_slot in removed_child_slots:
        slots.pop(child_slot.id, None)

    removed_ids = {slot.id for slot in removed_slots}
    for row in range(cmd.position + 1, tp["rows"]):
        for col in range(tp["columns"]):
            slot = named.get(cell_slot_name(row, col))
            if slot is not None and slot.id not in removed_ids:
                slots[slot.id] = replace(slot, name=cell_slot_name(row - 1, col))

    header_rows = tp["headerRows"]
    if cmd.position < header_rows:
        header_rows = max(0, header_rows - 1)

    props = {
        **(thaw(node.props) if node.props is not None else {}),
        "rows": tp["rows"] - 1,
        "merges": shift_merges_for_row_remove(tp["merges"], cmd.position),
        "headerRows": header_rows,
    }
    nodes[cmd.node_id] = replace(
        node,
        slots=tuple(slot_id for slot_id in node.slots if slot_id not in removed_ids),
        props=props,
    )

    inverse = AddTableRow(
        node_id=cmd.node_id,
        position=cmd.position,
        restore_slots=tuple(removed_slots),
        restore_nodes=tuple(removed_nodes),
        restore_child_slots=tuple(removed_child_slots),
        restore_slot_order=tuple(node.slots),
        restore_props=thaw(node.props) if node.props is not None else {},
    )
    return ok(doc.replace(nodes=nodes, slots=slots), inverse, True)


def _apply_set_table_header_rows(doc: TemplateDocument, cmd: SetTableHeaderRows) -> CommandResult:
    node = _table_node(doc, cmd.node_id, cmd.type)
    if isinstance(node, str):
        return err(node)

    tp = _table_props(node)
    if cmd.header_rows < 0 or cmd.header_rows > tp["rows"]:
        return err(f"Invalid header row count {cmd.header_rows}")

    inverse = SetTableHeaderRows(node_id=cmd.node_id, header_rows=tp["headerRows"])
    props = {**(thaw(node.props) if node.props is not None else {}), "headerRows": cmd.header_rows}
    nodes = {**doc.nodes, cmd.node_id: replace(node, props=props)}
    return ok(doc.replace(nodes=nodes), inverse, False)


_TABLE_HANDLERS = {
    AddTableRow: _apply_add_table_row,
    RemoveTableRow: _apply_remove_table_row,
    SetTableHeaderRows: _apply_set_table_header_rows,
}


def apply_table_command(doc: TemplateDocument, indexes: DocumentIndexes, command: Any) -> CommandResult:
    handler = _TABLE_HANDLERS.get(type(command))
    if handler is None:
        return err(f"Unsupported table command {getattr(command, 'type', type(command).__name__)}")
    return handler(doc, command)


def create_table_slots(node_id: NodeId, props: Mapping[str, Any] | None) -> list[Slot]:
    rows = (props or {}).get("rows", TABLE_DEFAULT_PROPS["rows"])
    columns = (props or {}).get("columns", TABLE_DEFAULT_PROPS["columns"])
    return [
        Slot(id=new_id(), node_id=node_id, name=cell_slot_name(row, col))
        for row in range(rows)
        for col in range(columns)
    ]


def create_table_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type=TABLE_TYPE,
        label="Table",
        icon="table",
        category="layout",
        slots=(SlotTemplate("cell-{r}-{c}", dynamic=True),),
        allowed_children=AllowedChildren.allow_all(),
        applicable_styles=LAYOUT_STYLES,
        inspector=(
            InspectorField(
                "borderStyle",
                "Border Style",
                "select",
                options=(("None", "none"), ("All", "all"), ("Horizontal", "horizontal"), ("Vertical", "vertical")),
                default_value="all",
            ),
        ),
        default_props=TABLE_DEFAULT_PROPS,
        create_initial_slots=create_table_slots,
        command_types=TABLE_COMMAND_TYPES,
        command_handler=apply_table_command,
    )


__all__ = [
    "AddTableRow",
    "RemoveTableRow",
    "SetTableHeaderRows",
    "TABLE_COMMAND_TYPES",
    "TABLE_DEFAULT_PROPS",
    "TABLE_TYPE",
    "apply_table_command",
    "cell_slot_name",
    "create_table_definition",
    "create_table_slots",
    "parse_cell_name",
    "shift_merges_for_row_insert",
    "shift_merges_for_row_remove",
]
