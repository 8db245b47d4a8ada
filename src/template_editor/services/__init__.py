"""Service layer: settings persistence."""

from .settings import DEFAULT_SETTINGS_PATH, EngineSettings, SettingsStore

__all__ = ["DEFAULT_SETTINGS_PATH", "EngineSettings", "SettingsStore"]
