"""Bootstrap helpers wiring settings, logging, themes and the engine together."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .components import create_default_registry
from .engine.editor import EditorEngine
from .engine.registry import ComponentRegistry
from .model.document import TemplateDocument, create_empty_document
from .services.settings import EngineSettings, SettingsStore
from .theme.manager import ThemeManager, create_default_theme_manager
from .theme.models import Theme
from .utils import logging as logging_utils

LOGGER = logging.getLogger(__name__)


def configure_logging(
    settings: EngineSettings,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Configure logging at ``settings.effective_log_level`` and return the log file path."""

    level = settings.effective_log_level
    path = logging_utils.setup_logging(level, log_dir=log_dir, console=console, force=force)
    LOGGER.debug("Logging configured (level=%s, file=%s)", level, path)
    return path


def load_settings(
    path: Path | None = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EngineSettings:
    """Load persisted settings, applying CLI and environment overrides."""

    active_store = store or SettingsStore(path)
    return active_store.load(overrides=overrides)


def resolve_document_theme(
    doc: TemplateDocument,
    settings: EngineSettings,
    theme_manager: ThemeManager,
) -> Theme:
    """Theme for ``doc``: its ``override`` theme, else ``settings.default_theme``."""

    return theme_manager.resolve_ref(doc.theme_ref, settings.default_theme)


def create_engine(
    doc: TemplateDocument | None = None,
    *,
    settings: EngineSettings | None = None,
    registry: ComponentRegistry | None = None,
    theme_manager: ThemeManager | None = None,
    data_model: Mapping[str, Any] | None = None,
    data_examples: Sequence[Any] | None = None,
) -> EditorEngine:
    """Build an :class:`EditorEngine` with the built-in components and themes.

    A missing ``doc`` starts from an empty document. The theme comes from
    :func:`resolve_document_theme`.
    """

    active_settings = settings or EngineSettings()
    active_registry = registry or create_default_registry()
    manager = theme_manager or create_default_theme_manager()
    document = doc if doc is not None else create_empty_document(active_registry)
    theme = resolve_document_theme(document, active_settings, manager)
    LOGGER.debug("Creating engine with theme '%s'", theme.name)
    return EditorEngine(
        document,
        active_registry,
        theme=theme,
        settings=active_settings,
        data_model=data_model,
        data_examples=data_examples,
    )


__all__ = ["configure_logging", "create_engine", "load_settings", "resolve_document_theme"]
