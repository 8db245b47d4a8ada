"""Style cascade resolution.

Lowest to highest priority:

1. component default styles,
2. inheritable document styles (theme merged with template overrides),
3. the theme's block style preset named by ``style_preset``,
4. the node's inline styles.

Only keys flagged ``inheritable`` in the style registry flow from the
document into blocks; everything here is a pure function.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..model.document import Margins, PageSettings
from .style_registry import StyleRegistry

DEFAULT_PAGE_SETTINGS = PageSettings(format="A4", orientation="portrait", margins=Margins(20, 20, 20, 20))


def get_inheritable_keys(registry: StyleRegistry) -> frozenset[str]:
    return frozenset(prop.key for prop in registry.iter_properties() if prop.inheritable)


def resolve_document_styles(
    theme_doc_styles: Mapping[str, Any] | None,
    template_overrides: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Shallow-merge the theme's document styles with the template overrides."""

    return {**(theme_doc_styles or {}), **(template_overrides or {})}


def resolve_node_styles(
    resolved_doc_styles: Mapping[str, Any],
    inheritable_keys: frozenset[str] | set[str],
    preset_styles: Mapping[str, Any] | None,
    inline_styles: Mapping[str, Any] | None,
    default_styles: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    result: dict[str, Any] = dict(default_styles or {})
    for key in inheritable_keys:
        if key in resolved_doc_styles:
            result[key] = resolved_doc_styles[key]
    if preset_styles:
        result.update(preset_styles)
    if inline_styles:
        result.update(inline_styles)
    return result


def _as_page_settings(value: PageSettings | Mapping[str, Any] | None) -> PageSettings:
    if value is None:
        return DEFAULT_PAGE_SETTINGS
    if isinstance(value, PageSettings):
        return value
    return PageSettings.from_mapping(value)


def resolve_page_settings(
    theme_settings: PageSettings | Mapping[str, Any] | None,
    template_overrides: Mapping[str, Any] | None,
) -> PageSettings:
    """Field-level merge of template page overrides onto the theme (or A4 defaults).

    Overrides use the persisted camelCase keys; ``margins`` is replaced as a
    whole, never merged per side.
    """

    base = _as_page_settings(theme_settings)
    if not template_overrides:
        return base

    margins = template_overrides.get("margins")
    background = template_overrides.get("backgroundColor")
    return PageSettings(
        format=template_overrides.get("format") or base.format,
        orientation=template_overrides.get("orientation") or base.orientation,
        margins=Margins.from_mapping(margins) if margins is not None else base.margins,
        background_color=background if background is not None else base.background_color,
    )


def resolve_preset_styles(
    presets: Mapping[str, Any] | None,
    preset_name: str | None,
) -> Mapping[str, Any] | None:
    """Return the styles of ``preset_name`` or ``None`` when it does not exist."""

    if not presets or not preset_name:
        return None
    preset = presets.get(preset_name)
    if preset is None:
        return None
    if isinstance(preset, Mapping):
        return preset.get("styles")
    return getattr(preset, "styles", None)


__all__ = [
    "DEFAULT_PAGE_SETTINGS",
    "get_inheritable_keys",
    "resolve_document_styles",
    "resolve_node_styles",
    "resolve_page_settings",
    "resolve_preset_styles",
]
