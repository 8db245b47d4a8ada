"""The editor engine: single owner of document state.

Wires commands, indexes, undo history, style resolution and events
together. Everything UI-facing (canvas, inspector, text editor) talks to an
:class:`EditorEngine` instance and listens on :attr:`EditorEngine.events`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from ..model.document import (
    Node,
    NodeId,
    PageSettings,
    Slot,
    SlotId,
    TemplateDocument,
    freeze_document,
    validate_document,
)
from ..services.settings import EngineSettings
from ..theme.models import Theme
from ..utils.freeze import thaw
from .changes import Change, ChangeContext, CommandChange, TextChange
from .commands import CommandResult, UpdateNodeProps, apply_command
from .errors import StructureError
from .events import ComponentStateChanged, DocumentChanged, EventBus, ExampleChanged, SelectionChanged
from .indexes import DocumentIndexes, build_indexes, find_ancestor_at_level, get_node_depth
from .registry import ComponentRegistry
from .schema_paths import FieldPath, extract_field_paths
from .style_registry import DEFAULT_STYLE_REGISTRY, StyleRegistry
from .styles import (
    get_inheritable_keys,
    resolve_document_styles,
    resolve_node_styles,
    resolve_page_settings,
    resolve_preset_styles,
)
from .undo import TextChangeOps, UndoStack

LOGGER = logging.getLogger(__name__)

CONTENT_PROP = "content"


class EditorEngine:
    """Headless editing core for one template document.

    Args:
        doc: Initial document; it is copied (and frozen unless
            ``settings.freeze_documents`` is off) so the caller keeps no
            mutable handle on engine state.
        registry: Component registry consulted for every command.
        theme: Theme providing document styles, page settings and presets.
        style_registry: Style catalogue; decides which keys cascade.
        settings: Engine tunables (undo depth, freezing, validation).
        data_model: Optional schema describing example data.
        data_examples: Optional example payloads for previews.
    """

    def __init__(
        self,
        doc: TemplateDocument,
        registry: ComponentRegistry,
        *,
        theme: Theme | None = None,
        style_registry: StyleRegistry | None = None,
        settings: EngineSettings | None = None,
        data_model: Mapping[str, Any] | None = None,
        data_examples: Sequence[Any] | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or EngineSettings()
        self.style_registry = style_registry or DEFAULT_STYLE_REGISTRY
        self._theme = theme
        self._events: EventBus = EventBus()
        self._undo_stack = UndoStack(self.settings.undo_depth)
        self._inheritable_keys = get_inheritable_keys(self.style_registry)
        self._selected_node_id: NodeId | None = None
        self._component_state: dict[str, Any] = {}
        self._text_state_cache: dict[NodeId, Any] = {}
        self._data_model = data_model
        self._field_paths: list[FieldPath] | None = None
        self._data_examples = list(data_examples) if data_examples is not None else None
        self._current_example_index = 0

        self._doc = self._adopt(doc)
        self._indexes = build_indexes(self._doc)
        self._resolved_doc_styles: dict[str, Any] = {}
        self._resolved_page_settings: PageSettings = resolve_page_settings(None, None)
        self._recompute_styles()

        self._change_ctx = ChangeContext(
            stack=self._undo_stack,
            apply_silent=self._dispatch_silent,
            sync_content=self._sync_content,
            apply_snapshot=self._apply_snapshot,
            current_content=self._current_content,
            undo=self.undo,
            redo=self.redo,
        )

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def doc(self) -> TemplateDocument:
        return self._doc

    @property
    def indexes(self) -> DocumentIndexes:
        return self._indexes

    @property
    def selected_node_id(self) -> NodeId | None:
        return self._selected_node_id

    @property
    def theme(self) -> Theme | None:
        return self._theme

    @property
    def undo_stack(self) -> UndoStack:
        return self._undo_stack

    def get_node(self, node_id: NodeId) -> Node | None:
        return self._doc.nodes.get(node_id)

    def get_slot(self, slot_id: SlotId) -> Slot | None:
        return self._doc.slots.get(slot_id)

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------
    @property
    def resolved_doc_styles(self) -> dict[str, Any]:
        return dict(self._resolved_doc_styles)

    @property
    def resolved_page_settings(self) -> PageSettings:
        return self._resolved_page_settings

    def get_resolved_node_styles(self, node_id: NodeId) -> dict[str, Any]:
        """Resolve a node's final styles; unknown nodes resolve to ``{}``."""

        node = self._doc.nodes.get(node_id)
        if node is None:
            return {}
        definition = self.registry.get(node.type)
        presets = self._theme.block_style_presets if self._theme is not None else None
        return resolve_node_styles(
            self._resolved_doc_styles,
            self._inheritable_keys,
            resolve_preset_styles(presets, node.style_preset),
            node.styles,
            definition.default_styles if definition is not None else None,
        )

    def set_theme(self, theme: Theme | None) -> None:
        self._theme = theme
        self._recompute_styles()
        self._notify()

    def _recompute_styles(self) -> None:
        theme = self._theme
        self._resolved_doc_styles = resolve_document_styles(
            theme.document_styles if theme is not None else None,
            self._doc.document_styles_override,
        )
        self._resolved_page_settings = resolve_page_settings(
            theme.page_settings if theme is not None else None,
            self._doc.page_settings_override,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_node(self, node_id: NodeId | None) -> None:
        if node_id == self._selected_node_id:
            return
        self._selected_node_id = node_id
        self._events.publish(SelectionChanged(node_id=node_id))

    def expand_selection(self) -> NodeId | None:
        """Select the parent of the current selection and return the new selection."""

        current = self._selected_node_id
        if current is None or current == self._doc.root or current not in self._doc.nodes:
            return current
        depth = get_node_depth(current, self._indexes)
        parent = find_ancestor_at_level(current, depth - 1, self._indexes)
        if parent is not None:
            self.select_node(parent)
        return self._selected_node_id

    # ------------------------------------------------------------------
    # Data examples
    # ------------------------------------------------------------------
    @property
    def data_model(self) -> Mapping[str, Any] | None:
        return self._data_model

    @property
    def field_paths(self) -> list[FieldPath]:
        """Paths available in :attr:`data_model`, computed once on first access."""

        if self._field_paths is None:
            self._field_paths = extract_field_paths(self._data_model) if self._data_model else []
        return list(self._field_paths)

    @property
    def data_examples(self) -> list[Any] | None:
        return self._data_examples

    @property
    def current_example_index(self) -> int:
        return self._current_example_index

    @property
    def current_example(self) -> Any | None:
        examples = self._data_examples
        if not examples or not 0 <= self._current_example_index < len(examples):
            return None
        return examples[self._current_example_index]

    def get_example_data(self) -> Any | None:
        """Return the current example's data, unwrapping ``{id, name, data}`` wrappers."""

        example = self.current_example
        if example is None:
            return None
        if isinstance(example, Mapping) and isinstance(example.get("id"), str) and isinstance(example.get("data"), Mapping):
            return example["data"]
        return example

    def set_current_example(self, index: int) -> None:
        if index == self._current_example_index:
            return
        examples = self._data_examples
        if not examples or index < 0 or index >= len(examples):
            LOGGER.debug("Ignoring data example index %s", index)
            return
        self._current_example_index = index
        self._events.publish(ExampleChanged(index=index, example=examples[index]))

    # ------------------------------------------------------------------
    # Component state
    # ------------------------------------------------------------------
    def set_component_state(self, key: str, value: Any) -> None:
        self._component_state[key] = value
        self._events.publish(ComponentStateChanged(key=key, value=value))

    def get_component_state(self, key: str, default: Any = None) -> Any:
        return self._component_state.get(key, default)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, command: Any, *, skip_undo: bool = False) -> CommandResult:
        """Apply ``command`` and record its inverse unless ``skip_undo``.

        Rejected commands leave the document, indexes and undo history as
        they were.
        """

        result = self._apply(command)
        if not result.ok:
            LOGGER.warning("Rejected %s: %s", type(command).__name__, result.error)
            return result
        if not skip_undo and result.inverse is not None:
            self._undo_stack.push(CommandChange(result.inverse))
        self._notify()
        return result

    def _dispatch_silent(self, command: Any) -> CommandResult:
        result = self._apply(command)
        if result.ok:
            self._notify()
        return result

    def _apply(self, command: Any) -> CommandResult:
        result = apply_command(self._doc, self._indexes, command, self.registry)
        if result.ok:
            self._doc = self._adopt(result.doc)
            if result.structure_changed:
                self._indexes = build_indexes(self._doc)
            self._recompute_styles()
            LOGGER.debug("Applied %s (structure_changed=%s)", type(command).__name__, result.structure_changed)
        return result

    def _adopt(self, doc: TemplateDocument) -> TemplateDocument:
        if self.settings.freeze_documents:
            return freeze_document(doc)
        return replace(doc, nodes=dict(doc.nodes), slots=dict(doc.slots))

    # ------------------------------------------------------------------
    # Undo / redo
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        change = self._undo_stack.peek_undo()
        if change is None:
            return False
        return change.undo_step(self._change_ctx)

    def redo(self) -> bool:
        change = self._undo_stack.peek_redo()
        if change is None:
            return False
        return change.redo_step(self._change_ctx)

    @property
    def can_undo(self) -> bool:
        return self._undo_stack.can_undo

    @property
    def can_redo(self) -> bool:
        return self._undo_stack.can_redo

    # ------------------------------------------------------------------
    # Rich-text integration
    # ------------------------------------------------------------------
    def push_text_change(self, entry: TextChange) -> None:
        """Record the start of a rich-text editing session; clears redo."""

        self._undo_stack.push(entry)

    def peek_undo(self) -> Change | None:
        return self._undo_stack.peek_undo()

    def revive_text_change_ops(self, node_id: NodeId, ops: TextChangeOps) -> None:
        """Reconnect sessions of ``node_id`` whose external editor has gone away."""

        for entries in (self._undo_stack.undo_entries(), self._undo_stack.redo_entries()):
            for entry in entries:
                if (
                    isinstance(entry, TextChange)
                    and entry.node_id == node_id
                    and (entry.ops is None or not entry.ops.is_alive())
                ):
                    entry.ops = ops

    def cache_text_state(self, node_id: NodeId, state: Any) -> None:
        self._text_state_cache[node_id] = state

    def take_cached_text_state(self, node_id: NodeId) -> Any | None:
        """Return and forget the cached editor state of ``node_id``."""

        return self._text_state_cache.pop(node_id, None)

    def _content_command(self, node_id: NodeId, content: Any) -> UpdateNodeProps | None:
        node = self._doc.nodes.get(node_id)
        if node is None:
            LOGGER.debug("Skipping content sync for missing node %s", node_id)
            return None
        props = thaw(node.props) if node.props is not None else {}
        props[CONTENT_PROP] = content
        return UpdateNodeProps(node_id=node_id, props=props)

    def _sync_content(self, node_id: NodeId, content: Any) -> None:
        command = self._content_command(node_id, content)
        if command is not None:
            self.dispatch(command, skip_undo=True)

    def _current_content(self, node_id: NodeId) -> Any:
        node = self._doc.nodes.get(node_id)
        if node is None or node.props is None:
            return None
        return thaw(node.props.get(CONTENT_PROP))

    def _apply_snapshot(self, node_id: NodeId, content: Any) -> None:
        command = self._content_command(node_id, thaw(content) if content is not None else None)
        if command is not None:
            self.dispatch(command, skip_undo=True)

    # ------------------------------------------------------------------
    # Whole-document replacement
    # ------------------------------------------------------------------
    def replace_document(self, doc: TemplateDocument) -> None:
        """Load ``doc``, dropping history, selection, component and text state.

        Raises:
            StructureError: when ``settings.validate_on_load`` is on and
                ``doc`` violates the document invariants.
        """

        if self.settings.validate_on_load:
            problems = validate_document(doc, self.registry)
            if problems:
                raise StructureError("Invalid document: " + "; ".join(problems))
        self._doc = self._adopt(doc)
        self._indexes = build_indexes(self._doc)
        self._recompute_styles()
        self._undo_stack.clear()
        self._text_state_cache.clear()
        self._component_state.clear()
        previous_selection = self._selected_node_id
        self._selected_node_id = None
        LOGGER.debug("Document replaced (%d nodes)", len(self._doc.nodes))
        self._notify()
        if previous_selection is not None:
            self._events.publish(SelectionChanged(node_id=None))

    def _notify(self) -> None:
        self._events.publish(DocumentChanged(doc=self._doc, indexes=self._indexes))
        selected = self._selected_node_id
        if selected is not None and selected not in self._doc.nodes:
            self.select_node(None)


__all__ = ["CONTENT_PROP", "EditorEngine"]
