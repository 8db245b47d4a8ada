"""Structural, content, logic and page blocks without custom behaviour."""

from __future__ import annotations

from ..engine.registry import AllowedChildren, ComponentDefinition, InspectorField, SlotTemplate
from ..model.document import ROOT_TYPE

LAYOUT_STYLES: tuple[str, ...] = (
    "padding",
    "margin",
    "backgroundColor",
    "borderWidth",
    "borderStyle",
    "borderColor",
    "borderRadius",
)


def create_root_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type=ROOT_TYPE,
        label="Document Root",
        icon="file-text",
        category="layout",
        slots=(SlotTemplate("children"),),
        allowed_children=AllowedChildren.denylist(ROOT_TYPE),
        applicable_styles=(),
        hidden=True,
    )


def create_text_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="text",
        label="Text",
        icon="type",
        category="content",
        allowed_children=AllowedChildren.allow_none(),
        default_props={"content": None},
    )


def create_container_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="container",
        label="Container",
        icon="box",
        category="layout",
        slots=(SlotTemplate("children"),),
        allowed_children=AllowedChildren.allow_all(),
    )


def create_conditional_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="conditional",
        label="Conditional",
        icon="git-branch",
        category="logic",
        slots=(SlotTemplate("body"),),
        allowed_children=AllowedChildren.allow_all(),
        applicable_styles=LAYOUT_STYLES,
        inspector=(
            InspectorField("condition.raw", "Condition", "expression"),
            InspectorField("inverse", "Inverse (else)", "boolean", default_value=False),
        ),
        default_props={"condition": {"raw": "", "language": "jsonata"}, "inverse": False},
    )


def create_loop_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="loop",
        label="Loop",
        icon="repeat",
        category="logic",
        slots=(SlotTemplate("body"),),
        allowed_children=AllowedChildren.allow_all(),
        applicable_styles=LAYOUT_STYLES,
        inspector=(
            InspectorField("expression.raw", "Expression", "expression"),
            InspectorField("itemAlias", "Item Alias", "text", default_value="item"),
            InspectorField("indexAlias", "Index Alias", "text"),
        ),
        default_props={"expression": {"raw": "", "language": "jsonata"}, "itemAlias": "item", "indexAlias": None},
    )


def create_page_break_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="pagebreak",
        label="Page Break",
        icon="minus",
        category="page",
        allowed_children=AllowedChildren.allow_none(),
        applicable_styles=(),
    )


def create_page_header_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="pageheader",
        label="Page Header",
        icon="panel-top",
        category="page",
        slots=(SlotTemplate("children"),),
        allowed_children=AllowedChildren.allow_all(),
    )


def create_page_footer_definition() -> ComponentDefinition:
    return ComponentDefinition(
        type="pagefooter",
        label="Page Footer",
        icon="panel-bottom",
        category="page",
        slots=(SlotTemplate("children"),),
        allowed_children=AllowedChildren.allow_all(),
    )


__all__ = [
    "LAYOUT_STYLES",
    "create_conditional_definition",
    "create_container_definition",
    "create_loop_definition",
    "create_page_break_definition",
    "create_page_footer_definition",
    "create_page_header_definition",
    "create_root_definition",
    "create_text_definition",
]
