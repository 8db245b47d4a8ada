"""Columns block: one ``column-{i}`` slot per entry of ``columnSizes``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..engine.commands import COLUMN_SIZES_PROP, COLUMNS_TYPE
from ..engine.registry import AllowedChildren, ComponentDefinition, InspectorField, SlotTemplate
from ..model.document import NodeId, Slot, new_id
from .basic import LAYOUT_STYLES

COLUMNS_DEFAULT_PROPS: Mapping[str, Any] = {COLUMN_SIZES_PROP: [1, 1], "gap": 0}


def create_column_slots(node_id: NodeId, props: Mapping[str, Any] | None) -> list[Slot]:
    sizes = (props or {}).get(COLUMN_SIZES_PROP) or COLUMNS_DEFAULT_PROPS[COLUMN_SIZES_PROP]
    return [Slot(id=new_id(), node_id=node_id, name=f"column-{index}") for index in range(len(sizes))]


def create_columns_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type=COLUMNS_TYPE,
        label="Columns",
        icon="columns-2",
        category="layout",
        slots=(SlotTemplate("column-{i}", dynamic=True),),
        allowed_children=AllowedChildren.allow_all(),
        applicable_styles=LAYOUT_STYLES,
        inspector=(InspectorField("gap", "Gap", "number", default_value=0),),
        default_props=COLUMNS_DEFAULT_PROPS,
        create_initial_slots=create_column_slots,
    )


__all__ = ["COLUMNS_DEFAULT_PROPS", "create_column_slots", "create_columns_definition"]
