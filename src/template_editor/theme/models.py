"""Data structures describing document themes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from ..model.document import PageSettings


@dataclass(slots=True)
class BlockStylePreset:
    """Named style bundle a node can opt into through ``style_preset``."""

    label: str
    styles: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.styles = dict(self.styles or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "styles": dict(self.styles)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BlockStylePreset":
        return cls(label=str(payload.get("label") or ""), styles=dict(payload.get("styles") or {}))


def _normalize_presets(presets: Mapping[str, Any] | None) -> Dict[str, BlockStylePreset]:
    normalized: Dict[str, BlockStylePreset] = {}
    for key, value in (presets or {}).items():
        if isinstance(value, BlockStylePreset):
            normalized[key] = value
        elif isinstance(value, Mapping):
            normalized[key] = BlockStylePreset.from_dict({"label": key, **value})
        else:
            raise TypeError(f"Preset '{key}' must be a mapping, received {type(value)!r}")
    return normalized


@dataclass(slots=True)
class Theme:
    """Serializable theme: document styles, page layout and block presets."""

    name: str
    title: str
    document_styles: Dict[str, Any] = field(default_factory=dict)
    page_settings: PageSettings | None = None
    block_style_presets: Dict[str, BlockStylePreset] = field(default_factory=dict)
    description: str | None = None
    version: str = "1.0.0"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.name = (self.name or "default").strip().lower() or "default"
        self.title = (self.title or self.name.title()).strip()
        self.document_styles = dict(self.document_styles or {})
        if isinstance(self.page_settings, Mapping):
            self.page_settings = PageSettings.from_mapping(self.page_settings)
        self.block_style_presets = _normalize_presets(self.block_style_presets)
        self.metadata = dict(self.metadata or {})

    def preset(self, name: str) -> BlockStylePreset | None:
        return self.block_style_presets.get(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "version": self.version,
            "metadata": dict(self.metadata),
            "documentStyles": dict(self.document_styles),
            "pageSettings": self.page_settings.to_dict() if self.page_settings is not None else None,
            "blockStylePresets": {key: preset.to_dict() for key, preset in self.block_style_presets.items()},
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Theme":
        if "name" not in payload:
            raise ValueError("Theme payload missing 'name'")
        description = payload.get("description")
        page_settings = payload.get("pageSettings")
        return cls(
            name=str(payload["name"]),
            title=str(payload.get("title") or payload["name"]),
            document_styles=dict(payload.get("documentStyles") or {}),
            page_settings=PageSettings.from_mapping(page_settings) if page_settings else None,
            block_style_presets=payload.get("blockStylePresets") or {},
            description=str(description) if description is not None else None,
            version=str(payload.get("version") or "1.0.0"),
            metadata=dict(payload.get("metadata") or {}),
        )

    @classmethod
    def from_json(cls, text: str) -> "Theme":
        data = json.loads(text)
        if not isinstance(data, Mapping):
            raise ValueError("Theme JSON root must be an object")
        return cls.from_dict(data)


__all__ = ["BlockStylePreset", "Theme"]
