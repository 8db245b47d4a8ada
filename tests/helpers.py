"""Shared test helpers and stub classes.

Builders used across test modules. Import from here instead of duplicating
these helpers in individual test files.
"""

from __future__ import annotations

from typing import Any

from template_editor.engine.commands import InsertNode
from template_editor.engine.editor import EditorEngine
from template_editor.model.document import NodeId, SlotId, TemplateDocument
from template_editor.persistence import document_to_dict


def root_slot_id(doc: TemplateDocument) -> SlotId:
    """Return the id of the root's ``children`` slot."""
    return doc.nodes[doc.root].slots[0]


def slot_named(doc: TemplateDocument, node_id: NodeId, name: str) -> SlotId:
    for slot_id in doc.nodes[node_id].slots:
        if doc.slots[slot_id].name == name:
            return slot_id
    raise AssertionError(f"node {node_id} has no slot named {name!r}")


def add_node(
    engine: EditorEngine,
    component_type: str,
    slot_id: SlotId | None = None,
    index: int = -1,
    **props: Any,
) -> NodeId:
    """Create a node through the registry and insert it via ``dispatch``."""
    created = engine.registry.create_node(component_type, props or None)
    target = slot_id if slot_id is not None else root_slot_id(engine.doc)
    result = engine.dispatch(InsertNode.from_created(created, target, index))
    assert result.ok, getattr(result, "error", None)
    return created.node.id


def snapshot(doc: TemplateDocument) -> dict[str, Any]:
    """Plain-data view of a document for equality checks across snapshots."""
    return document_to_dict(doc)


def children_of(doc: TemplateDocument, slot_id: SlotId) -> list[NodeId]:
    return list(doc.slots[slot_id].children)


class FakeTextOps:
    """In-memory stand-in for an external rich-text editor's history.

    ``history`` holds one content value per undo depth; ``type_text`` appends
    a new state and drops anything redoable, like a real editor would.
    """

    def __init__(self, content: Any = "", *, alive: bool = True) -> None:
        self.history: list[Any] = [content]
        self.position = 0
        self.alive = alive
        self.undo_calls = 0
        self.redo_calls = 0

    def type_text(self, content: Any) -> None:
        del self.history[self.position + 1 :]
        self.history.append(content)
        self.position += 1

    def is_alive(self) -> bool:
        return self.alive

    def undo_depth(self) -> int:
        return self.position

    def undo(self) -> bool:
        if self.position == 0:
            return False
        self.position -= 1
        self.undo_calls += 1
        return True

    def redo(self) -> bool:
        if self.position >= len(self.history) - 1:
            return False
        self.position += 1
        self.redo_calls += 1
        return True

    def get_content(self) -> Any:
        return self.history[self.position]
