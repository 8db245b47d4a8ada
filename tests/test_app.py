"""Tests for :mod:`template_editor.app` bootstrap helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from template_editor import app
from template_editor.components import create_default_registry
from template_editor.model.document import create_empty_document
from template_editor.services.settings import EngineSettings, SettingsStore
from template_editor.theme.manager import create_default_theme_manager
from template_editor.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    for name in ("TEMPLATE_EDITOR_THEME", "TEMPLATE_EDITOR_LOG_LEVEL", "TEMPLATE_EDITOR_DEBUG_LOGGING"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    asyncio_level = logging.getLogger("asyncio").level
    monkeypatch.setattr(logging_utils, "_CONFIGURED", False)
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("asyncio").setLevel(asyncio_level)


def test_configure_logging_uses_settings_level(tmp_path: Path) -> None:
    path = app.configure_logging(EngineSettings(log_level="WARNING"), log_dir=tmp_path, console=False, force=True)

    assert path == tmp_path / "template_editor.log"
    assert logging.getLogger().level == logging.WARNING


def test_debug_logging_setting_forces_debug(tmp_path: Path) -> None:
    settings = EngineSettings(log_level="ERROR", debug_logging=True)

    app.configure_logging(settings, log_dir=tmp_path, console=False, force=True)

    assert logging.getLogger().level == logging.DEBUG


def test_load_settings_applies_overrides(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"undo_depth": 5, "default_theme": "letter"}), encoding="utf-8")

    settings = app.load_settings(path, overrides={"undo_depth": 9})

    assert settings.undo_depth == 9
    assert settings.default_theme == "letter"


def test_load_settings_with_explicit_store(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    store.save(EngineSettings(validate_on_load=True))

    assert app.load_settings(store=store).validate_on_load is True


def test_inherited_theme_follows_default_theme_setting() -> None:
    registry = create_default_registry()
    doc = create_empty_document(registry)

    engine = app.create_engine(doc, settings=EngineSettings(default_theme="letter"), registry=registry)

    assert engine.theme.name == "letter"
    assert engine.resolved_page_settings.format == "Letter"
    assert engine.resolved_doc_styles["fontFamily"] == "Georgia, serif"


def test_document_override_wins_over_default_theme() -> None:
    registry = create_default_registry()
    doc = create_empty_document(registry).replace(theme_ref={"type": "override", "themeId": "default"})

    theme = app.resolve_document_theme(doc, EngineSettings(default_theme="letter"), create_default_theme_manager())

    assert theme.name == "default"


def test_unknown_default_theme_falls_back(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="template_editor.theme.manager"):
        engine = app.create_engine(settings=EngineSettings(default_theme="neon"))

    assert engine.theme.name == "default"
    assert any("neon" in record.getMessage() for record in caplog.records)


def test_create_engine_defaults() -> None:
    engine = app.create_engine()

    assert engine.registry.get("table") is not None
    assert engine.settings == EngineSettings()
    assert engine.doc.nodes[engine.doc.root].type == "root"
    assert not engine.can_undo
