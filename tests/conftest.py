"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from template_editor.components import create_default_registry
from template_editor.engine.editor import EditorEngine
from template_editor.engine.indexes import build_indexes
from template_editor.engine.registry import ComponentRegistry
from template_editor.model.document import TemplateDocument, create_empty_document
from template_editor.services.settings import EngineSettings


@pytest.fixture
def registry() -> ComponentRegistry:
    return create_default_registry()


@pytest.fixture
def empty_doc(registry: ComponentRegistry) -> TemplateDocument:
    return create_empty_document(registry)


@pytest.fixture
def engine(registry: ComponentRegistry, empty_doc: TemplateDocument) -> EditorEngine:
    return EditorEngine(empty_doc, registry)


@pytest.fixture
def unfrozen_engine(registry: ComponentRegistry, empty_doc: TemplateDocument) -> EditorEngine:
    return EditorEngine(empty_doc, registry, settings=EngineSettings(freeze_documents=False))


@pytest.fixture
def empty_indexes(empty_doc: TemplateDocument):
    return build_indexes(empty_doc)
