"""Tests for :mod:`template_editor.engine.indexes`."""

from __future__ import annotations

import pytest

from template_editor.engine.commands import MoveNode, RemoveNode
from template_editor.engine.errors import StructureError
from template_editor.engine.indexes import (
    DocumentIndexes,
    build_indexes,
    find_ancestor_at_level,
    get_ancestor_path,
    get_node_depth,
    is_ancestor,
)
from template_editor.model.document import create_empty_document
from tests.helpers import add_node, root_slot_id, slot_named


@pytest.fixture
def nested(engine):
    """root > outer(container) > inner(container) > leaf(text)."""
    outer = add_node(engine, "container")
    inner = add_node(engine, "container", slot_named(engine.doc, outer, "children"))
    leaf = add_node(engine, "text", slot_named(engine.doc, inner, "children"))
    return engine, outer, inner, leaf


def test_root_has_depth_zero_and_no_parent(empty_doc) -> None:
    indexes = build_indexes(empty_doc)

    assert indexes.depth_by_node_id[empty_doc.root] == 0
    assert empty_doc.root not in indexes.parent_slot_by_node_id
    assert indexes.node_by_slot_id[root_slot_id(empty_doc)] == empty_doc.root


def test_parent_and_depth_lookups(nested) -> None:
    engine, outer, inner, leaf = nested
    indexes = engine.indexes

    assert indexes.parent_node_by_node_id[leaf] == inner
    assert indexes.parent_slot_by_node_id[leaf] == slot_named(engine.doc, inner, "children")
    assert indexes.parent_node_by_node_id[outer] == engine.doc.root
    assert get_node_depth(outer, indexes) == 1
    assert get_node_depth(leaf, indexes) == 3
    assert get_node_depth("unknown", indexes) == 0


def test_indexes_are_read_only(nested) -> None:
    engine, *_ = nested
    with pytest.raises(TypeError):
        engine.indexes.depth_by_node_id["x"] = 1  # type: ignore[index]


def test_ancestor_path(nested) -> None:
    engine, outer, inner, leaf = nested

    assert get_ancestor_path(leaf, engine.indexes, engine.doc) == [engine.doc.root, outer, inner, leaf]
    assert get_ancestor_path(engine.doc.root, engine.indexes, engine.doc) == [engine.doc.root]


def test_ancestor_path_detects_cycles() -> None:
    doc = create_empty_document()
    indexes = DocumentIndexes(
        parent_slot_by_node_id={},
        parent_node_by_node_id={"a": "b", "b": "a"},
        node_by_slot_id={},
        depth_by_node_id={},
    )
    with pytest.raises(StructureError) as info:
        get_ancestor_path("a", indexes, doc)
    assert info.value.node_id == "a"


def test_ancestor_path_detects_detached_nodes() -> None:
    doc = create_empty_document()
    with pytest.raises(StructureError):
        get_ancestor_path("orphan", build_indexes(doc), doc)


def test_is_ancestor(nested) -> None:
    engine, outer, inner, leaf = nested
    indexes = engine.indexes

    assert is_ancestor(leaf, outer, indexes)
    assert is_ancestor(leaf, engine.doc.root, indexes)
    assert not is_ancestor(outer, leaf, indexes)
    assert not is_ancestor(outer, outer, indexes)


def test_find_ancestor_at_level(nested) -> None:
    engine, outer, inner, leaf = nested
    indexes = engine.indexes

    assert find_ancestor_at_level(leaf, 1, indexes) == outer
    assert find_ancestor_at_level(leaf, 3, indexes) == leaf
    assert find_ancestor_at_level(inner, 5, indexes) == inner
    assert find_ancestor_at_level(leaf, 0, indexes) == engine.doc.root


def test_depths_match_ancestor_paths_after_structural_commands(nested) -> None:
    engine, outer, inner, leaf = nested
    second = add_node(engine, "container")

    engine.dispatch(MoveNode(node_id=inner, target_slot_id=slot_named(engine.doc, second, "children")))
    engine.dispatch(RemoveNode(node_id=outer))

    indexes = engine.indexes
    assert indexes.depth_by_node_id[engine.doc.root] == 0
    for node_id in engine.doc.nodes:
        path = get_ancestor_path(node_id, indexes, engine.doc)
        assert indexes.depth_by_node_id[node_id] == len(path) - 1
    assert outer not in indexes.depth_by_node_id
    assert indexes.depth_by_node_id[leaf] == 3
