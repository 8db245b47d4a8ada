"""Tests for :mod:`template_editor.utils.logging`."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from template_editor.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _restore_root_logger(monkeypatch: pytest.MonkeyPatch):
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    asyncio_level = logging.getLogger("asyncio").level
    monkeypatch.setattr(logging_utils, "_CONFIGURED", False)
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)
    monkeypatch.delenv("TEMPLATE_EDITOR_LOG_DIR", raising=False)
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


def _file_handlers() -> list[logging.handlers.RotatingFileHandler]:
    return [h for h in logging.getLogger().handlers if isinstance(h, logging.handlers.RotatingFileHandler)]


def test_setup_logging_writes_to_log_dir(tmp_path: Path) -> None:
    path = logging_utils.setup_logging("debug", log_dir=tmp_path, console=False, force=True)

    logging.getLogger("template_editor.test").debug("hello file")
    for handler in _file_handlers():
        handler.flush()

    assert path == tmp_path / "template_editor.log"
    assert logging_utils.get_log_path() == path
    assert logging.getLogger().level == logging.DEBUG
    assert "hello file" in path.read_text(encoding="utf-8")


def test_setup_logging_is_configured_once(tmp_path: Path) -> None:
    first = logging_utils.setup_logging(log_dir=tmp_path / "a", console=False)
    second = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False)

    assert second == first
    assert not (tmp_path / "b").exists()

    third = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False, force=True)
    assert third == tmp_path / "b" / "template_editor.log"


def test_console_handler_is_optional(tmp_path: Path) -> None:
    logging_utils.setup_logging(log_dir=tmp_path, console=True, force=True)

    stream_handlers = [
        h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
    ]
    assert len(stream_handlers) == 1
    assert len(_file_handlers()) == 1


def test_log_dir_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMPLATE_EDITOR_LOG_DIR", str(tmp_path / "env"))

    path = logging_utils.setup_logging(console=False, force=True)

    assert path == tmp_path / "env" / "template_editor.log"


def test_unknown_level_name_defaults_to_info(tmp_path: Path) -> None:
    logging_utils.setup_logging("verbose", log_dir=tmp_path, console=False, force=True)

    assert logging.getLogger().level == logging.INFO


def test_noisy_loggers_are_quieted(tmp_path: Path) -> None:
    logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False, force=True)

    assert logging.getLogger("asyncio").level == logging.WARNING


def test_get_logger_returns_named_logger() -> None:
    assert logging_utils.get_logger("template_editor.engine").name == "template_editor.engine"
