"""Catalogue of style properties the editor knows about.

Drives inspector forms and decides which document-level styles cascade
into blocks (``inheritable``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Literal

StylePropertyType = Literal["text", "select", "unit", "color", "spacing", "number"]


@dataclass(slots=True, frozen=True)
class StyleOption:
    label: str
    value: str


@dataclass(slots=True, frozen=True)
class StyleProperty:
    key: str
    label: str
    type: StylePropertyType
    inheritable: bool = False
    options: tuple[StyleOption, ...] = ()
    units: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class StyleGroup:
    name: str
    label: str
    properties: tuple[StyleProperty, ...] = ()


@dataclass(slots=True, frozen=True)
class StyleRegistry:
    groups: tuple[StyleGroup, ...] = ()

    def iter_properties(self) -> Iterator[StyleProperty]:
        for group in self.groups:
            yield from group.properties

    def get(self, key: str) -> StyleProperty | None:
        for prop in self.iter_properties():
            if prop.key == key:
                return prop
        return None

    def keys(self) -> list[str]:
        return [prop.key for prop in self.iter_properties()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": [
                {
                    "name": group.name,
                    "label": group.label,
                    "properties": [_property_to_dict(prop) for prop in group.properties],
                }
                for group in self.groups
            ]
        }


def _property_to_dict(prop: StyleProperty) -> dict[str, Any]:
    payload: dict[str, Any] = {"key": prop.key, "label": prop.label, "type": prop.type}
    if prop.inheritable:
        payload["inheritable"] = True
    if prop.options:
        payload["options"] = [{"label": option.label, "value": option.value} for option in prop.options]
    if prop.units:
        payload["units"] = list(prop.units)
    return payload


def _options(*pairs: tuple[str, str]) -> tuple[StyleOption, ...]:
    return tuple(StyleOption(label, value) for label, value in pairs)


DEFAULT_STYLE_REGISTRY = StyleRegistry(
    groups=(
        StyleGroup(
            name="typography",
            label="Typography",
            properties=(
                StyleProperty(
                    "fontFamily",
                    "Font",
                    "select",
                    inheritable=True,
                    options=_options(
                        ("System Default", "system-ui, -apple-system, sans-serif"),
                        ("Arial", "Arial, sans-serif"),
                        ("Georgia", "Georgia, serif"),
                        ("Times New Roman", '"Times New Roman", serif'),
                        ("Courier New", '"Courier New", monospace'),
                        ("Verdana", "Verdana, sans-serif"),
                    ),
                ),
                StyleProperty("fontSize", "Size", "unit", inheritable=True, units=("px", "em", "rem", "pt")),
                StyleProperty(
                    "fontWeight",
                    "Weight",
                    "select",
                    inheritable=True,
                    options=_options(("Normal", "400"), ("Medium", "500"), ("Semi Bold", "600"), ("Bold", "700")),
                ),
                StyleProperty("color", "Color", "color", inheritable=True),
                StyleProperty("lineHeight", "Line Height", "unit", inheritable=True, units=("px", "em", "%")),
                StyleProperty("letterSpacing", "Letter Spacing", "unit", inheritable=True, units=("px", "em")),
                StyleProperty(
                    "textAlign",
                    "Text Align",
                    "select",
                    inheritable=True,
                    options=_options(("Left", "left"), ("Center", "center"), ("Right", "right"), ("Justify", "justify")),
                ),
            ),
        ),
        StyleGroup(
            name="spacing",
            label="Spacing",
            properties=(
                StyleProperty("padding", "Padding", "spacing", units=("px", "em", "rem")),
                StyleProperty("margin", "Margin", "spacing", units=("px", "em", "rem")),
            ),
        ),
        StyleGroup(
            name="background",
            label="Background",
            properties=(StyleProperty("backgroundColor", "Background", "color"),),
        ),
        StyleGroup(
            name="borders",
            label="Borders",
            properties=(
                StyleProperty("borderWidth", "Width", "unit", units=("px", "em")),
                StyleProperty(
                    "borderStyle",
                    "Style",
                    "select",
                    options=_options(("None", "none"), ("Solid", "solid"), ("Dashed", "dashed"), ("Dotted", "dotted")),
                ),
                StyleProperty("borderColor", "Color", "color"),
                StyleProperty("borderRadius", "Radius", "unit", units=("px", "em", "rem", "%")),
            ),
        ),
    )
)


__all__ = [
    "DEFAULT_STYLE_REGISTRY",
    "StyleGroup",
    "StyleOption",
    "StyleProperty",
    "StylePropertyType",
    "StyleRegistry",
]
