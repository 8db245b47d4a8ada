"""Tests for :class:`template_editor.engine.editor.EditorEngine`."""

from __future__ import annotations

import logging

import pytest

from template_editor.engine.commands import (
    MoveNode,
    RemoveNode,
    SetStylePreset,
    UpdateDocumentStyles,
    UpdateNodeProps,
    UpdateNodeStyles,
    UpdatePageSettings,
)
from template_editor.engine.editor import EditorEngine
from template_editor.engine.errors import StructureError
from template_editor.engine.events import ComponentStateChanged, DocumentChanged, ExampleChanged, SelectionChanged
from template_editor.engine.registry import ComponentDefinition
from template_editor.model.document import TemplateDocument, create_empty_document
from template_editor.services.settings import EngineSettings
from template_editor.theme.manager import build_default_theme, build_letter_theme
from tests.helpers import add_node, children_of, root_slot_id, slot_named, snapshot


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    def test_successful_command_publishes_document_changed(self, engine) -> None:
        events: list[DocumentChanged] = []
        engine.events.subscribe(DocumentChanged, events.append)

        node_id = add_node(engine, "text")

        assert len(events) == 1
        assert events[0].doc is engine.doc
        assert events[0].indexes is engine.indexes
        assert node_id in events[0].doc.nodes

    def test_rejected_command_changes_nothing(self, engine, caplog) -> None:
        add_node(engine, "text")
        before_doc = engine.doc
        before_depth = len(engine.undo_stack)
        events: list[DocumentChanged] = []
        engine.events.subscribe(DocumentChanged, events.append)

        with caplog.at_level(logging.WARNING, logger="template_editor.engine.editor"):
            result = engine.dispatch(RemoveNode(node_id="missing"))

        assert not result.ok
        assert result.error == "Node missing not found"
        assert engine.doc is before_doc
        assert len(engine.undo_stack) == before_depth
        assert events == []
        assert any("Rejected RemoveNode" in record.getMessage() for record in caplog.records)

    def test_non_structural_commands_reuse_indexes(self, engine) -> None:
        node_id = add_node(engine, "text")
        before = engine.indexes

        engine.dispatch(UpdateNodeStyles(node_id=node_id, styles={"color": "red"}))
        engine.dispatch(UpdateNodeProps(node_id=node_id, props={"content": "hi"}))

        assert engine.indexes is before

    def test_structural_commands_rebuild_indexes(self, engine) -> None:
        before = engine.indexes

        node_id = add_node(engine, "text")

        assert engine.indexes is not before
        assert engine.indexes.depth_by_node_id[node_id] == 1

    def test_skip_undo_records_nothing(self, engine) -> None:
        node_id = add_node(engine, "text")
        depth = len(engine.undo_stack)

        engine.dispatch(UpdateNodeProps(node_id=node_id, props={"content": "x"}), skip_undo=True)

        assert len(engine.undo_stack) == depth
        assert engine.doc.nodes[node_id].props["content"] == "x"


# =============================================================================
# Undo / redo
# =============================================================================


class TestUndoRedo:
    def test_undo_then_redo_returns_to_each_snapshot(self, engine) -> None:
        history = [snapshot(engine.doc)]
        container = add_node(engine, "container")
        history.append(snapshot(engine.doc))
        text = add_node(engine, "text", slot_named(engine.doc, container, "children"))
        history.append(snapshot(engine.doc))
        engine.dispatch(MoveNode(node_id=text, target_slot_id=root_slot_id(engine.doc), index=0))
        history.append(snapshot(engine.doc))
        engine.dispatch(UpdateNodeStyles(node_id=text, styles={"fontWeight": "700"}))
        history.append(snapshot(engine.doc))
        engine.dispatch(RemoveNode(node_id=container))
        history.append(snapshot(engine.doc))

        for expected in reversed(history[:-1]):
            assert engine.undo()
            assert snapshot(engine.doc) == expected
        assert not engine.undo()

        for expected in history[1:]:
            assert engine.redo()
            assert snapshot(engine.doc) == expected
        assert not engine.redo()

    def test_idempotent_update_still_undoes_cleanly(self, engine) -> None:
        node_id = add_node(engine, "text", content="same")
        before = snapshot(engine.doc)

        engine.dispatch(UpdateNodeProps(node_id=node_id, props={"content": "same"}))
        engine.undo()

        assert snapshot(engine.doc) == before

    def test_new_command_clears_redo(self, engine) -> None:
        add_node(engine, "text")
        engine.undo()
        assert engine.can_redo

        add_node(engine, "text")

        assert not engine.can_redo

    def test_undo_depth_drops_oldest(self, registry) -> None:
        engine = EditorEngine(create_empty_document(registry), registry, settings=EngineSettings(undo_depth=2))
        first = add_node(engine, "text")
        add_node(engine, "text")
        add_node(engine, "text")

        assert engine.undo()
        assert engine.undo()
        assert not engine.undo()
        assert children_of(engine.doc, root_slot_id(engine.doc)) == [first]

    def test_undo_and_redo_publish_changes(self, engine) -> None:
        add_node(engine, "text")
        events: list[DocumentChanged] = []
        engine.events.subscribe(DocumentChanged, events.append)

        engine.undo()
        engine.redo()

        assert len(events) == 2


# =============================================================================
# Selection
# =============================================================================


class TestSelection:
    def test_select_publishes_once_per_change(self, engine) -> None:
        node_id = add_node(engine, "text")
        events: list[SelectionChanged] = []
        engine.events.subscribe(SelectionChanged, events.append)

        engine.select_node(node_id)
        engine.select_node(node_id)
        engine.select_node(None)

        assert [event.node_id for event in events] == [node_id, None]
        assert engine.selected_node_id is None

    def test_expand_selection_walks_up(self, engine) -> None:
        outer = add_node(engine, "container")
        inner = add_node(engine, "text", slot_named(engine.doc, outer, "children"))
        engine.select_node(inner)

        assert engine.expand_selection() == outer
        assert engine.expand_selection() == engine.doc.root
        assert engine.expand_selection() == engine.doc.root

    def test_expand_without_selection(self, engine) -> None:
        assert engine.expand_selection() is None

    def test_removing_selected_node_clears_selection(self, engine) -> None:
        node_id = add_node(engine, "text")
        other = add_node(engine, "text")
        engine.select_node(node_id)
        events: list[SelectionChanged] = []
        engine.events.subscribe(SelectionChanged, events.append)

        engine.dispatch(RemoveNode(node_id=other))
        assert engine.selected_node_id == node_id
        assert events == []

        engine.dispatch(RemoveNode(node_id=node_id))

        assert engine.selected_node_id is None
        assert [event.node_id for event in events] == [None]

    def test_undoing_an_insert_clears_its_selection(self, engine) -> None:
        node_id = add_node(engine, "text")
        engine.select_node(node_id)

        engine.undo()

        assert engine.selected_node_id is None

    def test_replace_document_publishes_cleared_selection(self, engine, registry) -> None:
        engine.select_node(add_node(engine, "text"))
        events: list[SelectionChanged] = []
        engine.events.subscribe(SelectionChanged, events.append)

        engine.replace_document(create_empty_document(registry))

        assert [event.node_id for event in events] == [None]

    def test_replace_without_selection_publishes_nothing(self, engine, registry) -> None:
        events: list[SelectionChanged] = []
        engine.events.subscribe(SelectionChanged, events.append)

        engine.replace_document(create_empty_document(registry))

        assert events == []


# =============================================================================
# Data examples and component state
# =============================================================================


EXAMPLES = [
    {"id": "alice", "name": "Alice", "data": {"customer": {"name": "Alice"}}},
    {"customer": {"name": "Bob"}},
]


class TestDataExamples:
    def test_wrapped_examples_are_unwrapped(self, registry, empty_doc) -> None:
        engine = EditorEngine(empty_doc, registry, data_examples=EXAMPLES)

        assert engine.current_example_index == 0
        assert engine.get_example_data() == {"customer": {"name": "Alice"}}

    def test_switching_examples_publishes(self, registry, empty_doc) -> None:
        engine = EditorEngine(empty_doc, registry, data_examples=EXAMPLES)
        events: list[ExampleChanged] = []
        engine.events.subscribe(ExampleChanged, events.append)

        engine.set_current_example(1)
        engine.set_current_example(1)

        assert [event.index for event in events] == [1]
        assert engine.get_example_data() == {"customer": {"name": "Bob"}}

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_out_of_range_index_is_ignored(self, registry, empty_doc, index) -> None:
        engine = EditorEngine(empty_doc, registry, data_examples=EXAMPLES)
        events: list[ExampleChanged] = []
        engine.events.subscribe(ExampleChanged, events.append)

        engine.set_current_example(index)

        assert engine.current_example_index == 0
        assert events == []

    def test_no_examples(self, engine) -> None:
        assert engine.current_example is None
        assert engine.get_example_data() is None

    def test_field_paths_from_data_model(self, registry, empty_doc) -> None:
        model = {"type": "object", "properties": {"customer": {"type": "object", "properties": {"name": {"type": "string"}}}}}
        engine = EditorEngine(empty_doc, registry, data_model=model)

        paths = engine.field_paths

        assert [(field.path, field.type) for field in paths] == [("customer", "object"), ("customer.name", "string")]
        paths.clear()
        assert len(engine.field_paths) == 2

    def test_field_paths_without_data_model(self, engine) -> None:
        assert engine.field_paths == []


class TestComponentState:
    def test_state_roundtrip_and_event(self, engine) -> None:
        events: list[ComponentStateChanged] = []
        engine.events.subscribe(ComponentStateChanged, events.append)

        engine.set_component_state("table:active-cell", (0, 1))

        assert engine.get_component_state("table:active-cell") == (0, 1)
        assert engine.get_component_state("missing", "fallback") == "fallback"
        assert [(event.key, event.value) for event in events] == [("table:active-cell", (0, 1))]

    def test_state_is_not_undoable(self, engine) -> None:
        engine.set_component_state("k", 1)

        assert not engine.can_undo


# =============================================================================
# Document replacement and freezing
# =============================================================================


class TestReplaceDocument:
    def test_replace_clears_session_state(self, engine, registry) -> None:
        node_id = add_node(engine, "text")
        engine.select_node(node_id)
        engine.set_component_state("k", 1)
        engine.cache_text_state(node_id, {"cursor": 3})
        replacement = create_empty_document(registry)
        events: list[DocumentChanged] = []
        engine.events.subscribe(DocumentChanged, events.append)

        engine.replace_document(replacement)

        assert engine.doc.root == replacement.root
        assert not engine.can_undo and not engine.can_redo
        assert engine.selected_node_id is None
        assert engine.get_component_state("k") is None
        assert engine.take_cached_text_state(node_id) is None
        assert len(events) == 1

    def test_validation_on_load(self, registry, empty_doc) -> None:
        engine = EditorEngine(empty_doc, registry, settings=EngineSettings(validate_on_load=True))
        broken = TemplateDocument(root="missing", nodes={}, slots={})

        with pytest.raises(StructureError, match="Invalid document"):
            engine.replace_document(broken)

        assert engine.doc.root == empty_doc.root

    def test_validation_is_off_by_default(self, engine) -> None:
        engine.replace_document(TemplateDocument(root="missing", nodes={}, slots={}))

        assert engine.doc.root == "missing"


class TestFreezing:
    def test_frozen_snapshots_reject_mutation(self, engine) -> None:
        node_id = add_node(engine, "text", content="hello")

        with pytest.raises(TypeError):
            engine.doc.nodes[node_id].props["content"] = "changed"  # type: ignore[index]
        with pytest.raises(TypeError):
            engine.doc.nodes["other"] = engine.doc.nodes[node_id]  # type: ignore[index]

    def test_unfrozen_engine_keeps_plain_maps(self, unfrozen_engine) -> None:
        node_id = add_node(unfrozen_engine, "text", content="hello")

        assert isinstance(unfrozen_engine.doc.nodes, dict)
        assert isinstance(unfrozen_engine.doc.nodes[node_id].props, dict)

    def test_caller_document_is_not_shared(self, registry, empty_doc) -> None:
        engine = EditorEngine(empty_doc, registry)
        add_node(engine, "text")

        assert len(empty_doc.nodes) == 1


# =============================================================================
# Styles through the engine
# =============================================================================


class TestResolvedStyles:
    def test_without_theme(self, engine) -> None:
        assert engine.resolved_doc_styles == {}
        assert engine.resolved_page_settings.format == "A4"

    def test_theme_preset_and_inline_cascade(self, registry, empty_doc) -> None:
        registry.register(
            ComponentDefinition(type="badge", label="Badge", default_styles={"padding": "2px", "color": "gray"})
        )
        engine = EditorEngine(empty_doc, registry, theme=build_default_theme())
        node_id = add_node(engine, "badge")

        engine.dispatch(SetStylePreset(node_id=node_id, style_preset="heading"))
        engine.dispatch(UpdateNodeStyles(node_id=node_id, styles={"fontWeight": "400"}))
        resolved = engine.get_resolved_node_styles(node_id)

        assert resolved["padding"] == "2px"
        assert resolved["color"] == "#212529"
        assert resolved["fontSize"] == "18pt"
        assert resolved["fontWeight"] == "400"
        assert resolved["fontFamily"].startswith("system-ui")

    def test_unknown_node_resolves_empty(self, engine) -> None:
        assert engine.get_resolved_node_styles("nope") == {}

    def test_document_style_override_is_undoable(self, registry, empty_doc) -> None:
        engine = EditorEngine(empty_doc, registry, theme=build_default_theme())

        engine.dispatch(UpdateDocumentStyles(styles={"fontSize": "13pt"}))
        assert engine.resolved_doc_styles["fontSize"] == "13pt"

        engine.undo()
        assert engine.resolved_doc_styles["fontSize"] == "11pt"

    def test_page_settings_override(self, engine) -> None:
        engine.dispatch(UpdatePageSettings(settings={"orientation": "landscape"}))
        assert engine.resolved_page_settings.orientation == "landscape"

        engine.undo()
        assert engine.resolved_page_settings.orientation == "portrait"

    def test_set_theme_recomputes_and_notifies(self, engine) -> None:
        events: list[DocumentChanged] = []
        engine.events.subscribe(DocumentChanged, events.append)

        engine.set_theme(build_letter_theme())

        assert engine.resolved_page_settings.format == "Letter"
        assert engine.resolved_doc_styles["fontFamily"] == "Georgia, serif"
        assert len(events) == 1


# =============================================================================
# Rich-text state cache
# =============================================================================


def test_text_state_cache_is_taken_once(engine) -> None:
    engine.cache_text_state("n1", {"selection": [0, 4]})

    assert engine.take_cached_text_state("n1") == {"selection": [0, 4]}
    assert engine.take_cached_text_state("n1") is None
