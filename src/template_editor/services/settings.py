"""Engine settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "EngineSettings",
    "SettingsStore",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".template_editor"
DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "TEMPLATE_EDITOR_LOG_LEVEL": "log_level",
    "TEMPLATE_EDITOR_THEME": "default_theme",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "TEMPLATE_EDITOR_FREEZE_DOCUMENTS": "freeze_documents",
    "TEMPLATE_EDITOR_VALIDATE_ON_LOAD": "validate_on_load",
    "TEMPLATE_EDITOR_DEBUG_LOGGING": "debug_logging",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "TEMPLATE_EDITOR_UNDO_DEPTH": "undo_depth",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class EngineSettings:
    """Tunables for an :class:`~template_editor.engine.editor.EditorEngine`.

    Attributes:
        undo_depth: Maximum number of undo entries kept; the oldest is dropped.
        freeze_documents: Deep-freeze every new snapshot so accidental
            mutation fails immediately.
        validate_on_load: Run structural validation in ``replace_document``.
        debug_logging: Force ``DEBUG`` level in :func:`template_editor.app.configure_logging`.
        log_level: Level name :func:`template_editor.app.configure_logging` hands to ``setup_logging``.
        default_theme: Theme :func:`template_editor.app.create_engine` uses when a
            document inherits its theme.
    """

    undo_depth: int = 100
    freeze_documents: bool = True
    validate_on_load: bool = False
    debug_logging: bool = False
    log_level: str = "INFO"
    default_theme: str = "default"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_logging else self.log_level


class SettingsStore:
    """Persistence adapter for :class:`EngineSettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> EngineSettings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = EngineSettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = EngineSettings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = EngineSettings()
            settings = _sanitize(settings, source=str(self._path))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        settings = self._apply_env_overrides(settings)
        LOGGER.debug("Settings loaded from %s: %s", self._path, settings)
        return settings

    def save(self, settings: EngineSettings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: EngineSettings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> EngineSettings:
        allowed = {field.name for field in fields(EngineSettings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = _sanitize(replace(settings, **filtered), source=source)
        return settings

    def _apply_env_overrides(self, settings: EngineSettings) -> EngineSettings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(EngineSettings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _sanitize(settings: EngineSettings, *, source: str) -> EngineSettings:
    """Replace out-of-range values with defaults, logging each one."""

    defaults = EngineSettings()
    updates: Dict[str, Any] = {}
    if not isinstance(settings.undo_depth, int) or isinstance(settings.undo_depth, bool) or settings.undo_depth < 1:
        LOGGER.warning("Ignoring invalid undo_depth %r from %s", settings.undo_depth, source)
        updates["undo_depth"] = defaults.undo_depth
    level = str(settings.log_level).strip().upper()
    if level not in _LOG_LEVELS:
        LOGGER.warning("Ignoring invalid log_level %r from %s", settings.log_level, source)
        level = defaults.log_level
    if level != settings.log_level:
        updates["log_level"] = level
    if updates:
        settings = replace(settings, **updates)
    return settings
