"""Data table block.

A datatable repeats its columns once per item of an array expression. The
columns are ``datatable-column`` child nodes in the datatable's ``columns``
slot; each column carries a header, a width and a ``body`` slot holding the
per-row template. The whole subtree is created in one ``create_subtree``
call so it can be inserted (and undone) as a unit.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..engine.commands import InsertNode
from ..engine.registry import AllowedChildren, ComponentDefinition, InspectorField, SlotTemplate, Subtree
from ..model.document import Node, NodeId, Slot, SlotId, new_id
from .basic import LAYOUT_STYLES

DATATABLE_TYPE = "datatable"
DATATABLE_COLUMN_TYPE = "datatable-column"
COLUMN_COUNT_PROP = "_columnCount"
DEFAULT_COLUMN_COUNT = 3


def build_column(index: int, column_count: int) -> tuple[Node, Slot]:
    """Return a column node for position ``index`` (0-based) and its ``body`` slot."""

    column_id = new_id()
    body = Slot(id=new_id(), node_id=column_id, name="body")
    column = Node(
        id=column_id,
        type=DATATABLE_COLUMN_TYPE,
        slots=(body.id,),
        props={"header": f"Column {index + 1}", "width": round(100 / column_count)},
    )
    return column, body


def create_datatable_subtree(node_id: NodeId, props: Mapping[str, Any] | None) -> Subtree:
    column_count = (props or {}).get(COLUMN_COUNT_PROP) or DEFAULT_COLUMN_COUNT
    extra_nodes: list[Node] = []
    extra_slots: list[Slot] = []
    for index in range(column_count):
        column, body = build_column(index, column_count)
        extra_nodes.append(column)
        extra_slots.append(body)

    columns_slot = Slot(
        id=new_id(),
        node_id=node_id,
        name="columns",
        children=tuple(column.id for column in extra_nodes),
    )
    return Subtree(slots=[columns_slot], extra_nodes=extra_nodes, extra_slots=extra_slots)


def add_column_command(columns_slot_id: SlotId, existing_count: int) -> InsertNode:
    """Build the command appending one more column to a datatable."""

    column, body = build_column(existing_count, existing_count + 1)
    return InsertNode(node=column, target_slot_id=columns_slot_id, index=-1, slots=(body,))


def create_datatable_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type=DATATABLE_TYPE,
        label="Data Table",
        icon="sheet",
        category="logic",
        slots=(SlotTemplate("columns"),),
        allowed_children=AllowedChildren.allowlist(DATATABLE_COLUMN_TYPE),
        applicable_styles=LAYOUT_STYLES,
        inspector=(
            InspectorField("expression.raw", "Data Expression", "expression"),
            InspectorField("itemAlias", "Item Alias", "text", default_value="item"),
            InspectorField("indexAlias", "Index Alias", "text"),
            InspectorField(
                "borderStyle",
                "Border Style",
                "select",
                options=(("None", "none"), ("All", "all"), ("Horizontal", "horizontal"), ("Vertical", "vertical")),
                default_value="all",
            ),
            InspectorField("headerEnabled", "Show Header", "boolean", default_value=True),
        ),
        default_props={
            "expression": {"raw": "", "language": "jsonata"},
            "itemAlias": "item",
            "indexAlias": None,
            "borderStyle": "all",
            "headerEnabled": True,
        },
        create_subtree=create_datatable_subtree,
    )


def create_datatable_column_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type=DATATABLE_COLUMN_TYPE,
        label="Data Table Column",
        icon="columns",
        category="logic",
        slots=(SlotTemplate("body"),),
        allowed_children=AllowedChildren.allow_all(),
        applicable_styles=LAYOUT_STYLES,
        inspector=(
            InspectorField("header", "Header", "text"),
            InspectorField("width", "Width", "number", default_value=33),
        ),
        default_props={"header": "Column", "width": 33},
        hidden=True,
    )


__all__ = [
    "COLUMN_COUNT_PROP",
    "DATATABLE_COLUMN_TYPE",
    "DATATABLE_TYPE",
    "DEFAULT_COLUMN_COUNT",
    "add_column_command",
    "build_column",
    "create_datatable_column_definition",
    "create_datatable_definition",
    "create_datatable_subtree",
]
