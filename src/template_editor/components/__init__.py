"""Built-in component definitions and the default registry."""

from __future__ import annotations

from ..engine.registry import ComponentRegistry
from .basic import (
    LAYOUT_STYLES,
    create_conditional_definition,
    create_container_definition,
    create_loop_definition,
    create_page_break_definition,
    create_page_footer_definition,
    create_page_header_definition,
    create_root_definition,
    create_text_definition,
)
from .columns import create_columns_definition
from .datatable import (
    DATATABLE_COLUMN_TYPE,
    DATATABLE_TYPE,
    add_column_command,
    create_datatable_column_definition,
    create_datatable_definition,
)
from .table import (
    TABLE_TYPE,
    AddTableRow,
    RemoveTableRow,
    SetTableHeaderRows,
    create_table_definition,
)


def create_default_registry() -> ComponentRegistry:
    """Return a fresh registry holding every built-in block type."""

    return ComponentRegistry(
        [
            create_root_definition(),
            create_text_definition(),
            create_container_definition(),
            create_columns_definition(),
            create_table_definition(),
            create_conditional_definition(),
            create_loop_definition(),
            create_datatable_definition(),
            create_datatable_column_definition(),
            create_page_break_definition(),
            create_page_header_definition(),
            create_page_footer_definition(),
        ]
    )


__all__ = [
    "AddTableRow",
    "DATATABLE_COLUMN_TYPE",
    "DATATABLE_TYPE",
    "LAYOUT_STYLES",
    "RemoveTableRow",
    "SetTableHeaderRows",
    "TABLE_TYPE",
    "add_column_command",
    "create_default_registry",
]
