"""Theme registry and file import/export helpers."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from ruamel.yaml import YAML

from ..model.document import Margins, PageSettings
from .models import BlockStylePreset, Theme

LOGGER = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def build_default_theme() -> Theme:
    return Theme(
        name="default",
        title="Default",
        description="Neutral sans-serif theme on A4 portrait.",
        document_styles={
            "fontFamily": "system-ui, -apple-system, sans-serif",
            "fontSize": "11pt",
            "color": "#212529",
            "lineHeight": "1.4",
        },
        page_settings=PageSettings(format="A4", orientation="portrait", margins=Margins(20, 20, 20, 20)),
        block_style_presets={
            "heading": BlockStylePreset(label="Heading", styles={"fontSize": "18pt", "fontWeight": "700"}),
            "muted": BlockStylePreset(label="Muted", styles={"color": "#6c757d", "fontSize": "9pt"}),
        },
    )


def build_letter_theme() -> Theme:
    return Theme(
        name="letter",
        title="Letter",
        description="Serif theme on US Letter with wider margins.",
        document_styles={"fontFamily": "Georgia, serif", "fontSize": "12pt", "color": "#000000"},
        page_settings=PageSettings(format="Letter", orientation="portrait", margins=Margins(25, 25, 25, 25)),
        block_style_presets={
            "quote": BlockStylePreset(label="Quote", styles={"fontStyle": "italic", "paddingLeft": "1em"}),
        },
    )


def _create_yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.allow_duplicate_keys = False
    yaml.default_flow_style = False
    yaml.width = 4096
    return yaml


class ThemeManager:
    """Registry that resolves and serializes themes by name."""

    def __init__(self, themes: Iterable[Theme] | None = None, *, default_name: str = "default") -> None:
        self._themes: Dict[str, Theme] = {}
        self._default_name = default_name.lower()
        if themes:
            for theme in themes:
                self.register(theme)
        if not self._themes:
            self.register(build_default_theme())
        if self._default_name not in self._themes:
            self._default_name = next(iter(self._themes))

    def register(self, theme: Theme, *, overwrite: bool = True) -> None:
        key = theme.name.lower()
        if not overwrite and key in self._themes:
            raise ValueError(f"Theme '{theme.name}' already registered")
        self._themes[key] = theme

    def available(self) -> List[Theme]:
        return [self._themes[name] for name in sorted(self._themes.keys())]

    def available_names(self) -> List[str]:
        return [theme.name for theme in self.available()]

    def get(self, name: str) -> Theme | None:
        return self._themes.get(name.strip().lower())

    def resolve(self, theme: Theme | str | None = None) -> Theme:
        """Return ``theme`` itself, the theme registered under that name, or the default."""
        if isinstance(theme, Theme):
            return theme
        key = (theme or self._default_name).strip().lower()
        resolved = self._themes.get(key)
        if resolved is None:
            LOGGER.warning("Unknown theme '%s'; falling back to '%s'", theme, self._default_name)
            return self._themes[self._default_name]
        return resolved

    def resolve_ref(self, theme_ref: Mapping[str, Any] | None, inherited: Theme | str | None = None) -> Theme:
        """Resolve a document's ``themeRef`` (``inherit`` or ``override`` + ``themeId``)."""
        if theme_ref and theme_ref.get("type") == "override" and theme_ref.get("themeId"):
            return self.resolve(str(theme_ref["themeId"]))
        return self.resolve(inherited)

    def default(self) -> Theme:
        return self._themes[self._default_name]

    def set_default(self, theme_name: str) -> None:
        key = theme_name.strip().lower()
        if key not in self._themes:
            raise KeyError(f"Unknown theme '{theme_name}'")
        self._default_name = key

    def export_theme(self, theme: Theme | str | None, destination: str | Path, *, indent: int = 2) -> Path:
        """Write a theme as JSON, or YAML when ``destination`` ends in ``.yaml``/``.yml``."""
        resolved = self.resolve(theme)
        path = Path(destination)
        payload = resolved.to_dict()
        if path.suffix.lower() in _YAML_SUFFIXES:
            buffer = io.StringIO()
            _create_yaml().dump(payload, buffer)
            path.write_text(buffer.getvalue(), encoding="utf-8")
        else:
            path.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
        return path

    def import_theme(self, source: str | Path, *, activate: bool = False) -> Theme:
        path = Path(source)
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in _YAML_SUFFIXES:
            payload = _create_yaml().load(text)
        else:
            payload = json.loads(text)
        if not isinstance(payload, Mapping):
            raise ValueError(f"Theme file {path.name} must contain an object")
        theme = Theme.from_dict(payload)
        self.register(theme)
        LOGGER.debug("Imported theme '%s' from %s", theme.name, path)
        if activate:
            self.set_default(theme.name)
        return theme


BUILTIN_THEMES = (build_default_theme, build_letter_theme)


def create_default_theme_manager() -> ThemeManager:
    return ThemeManager([factory() for factory in BUILTIN_THEMES])


__all__ = [
    "BUILTIN_THEMES",
    "ThemeManager",
    "build_default_theme",
    "build_letter_theme",
    "create_default_theme_manager",
]
