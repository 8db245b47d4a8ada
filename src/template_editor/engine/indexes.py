"""Derived lookups computed from a :class:`TemplateDocument`.

The indexes give O(1) parent/slot/depth queries that would otherwise need a
walk of the whole node/slot graph. They are rebuilt wholesale after every
structural change and never edited in place.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..model.document import NodeId, SlotId, TemplateDocument
from .errors import StructureError


@dataclass(slots=True, frozen=True)
class DocumentIndexes:
    """Read-only parent, owner and depth maps for one document snapshot.

    Attributes:
        parent_slot_by_node_id: Slot holding each node (the root has no entry).
        parent_node_by_node_id: Node owning that slot.
        node_by_slot_id: Owner of every slot.
        depth_by_node_id: Distance from the root (root = 0).
    """

    parent_slot_by_node_id: Mapping[NodeId, SlotId]
    parent_node_by_node_id: Mapping[NodeId, NodeId]
    node_by_slot_id: Mapping[SlotId, NodeId]
    depth_by_node_id: Mapping[NodeId, int]


def build_indexes(doc: TemplateDocument) -> DocumentIndexes:
    """Build indexes for ``doc`` in O(nodes + slots)."""

    parent_slot: dict[NodeId, SlotId] = {}
    parent_node: dict[NodeId, NodeId] = {}
    node_by_slot: dict[SlotId, NodeId] = {}

    for slot in doc.slots.values():
        node_by_slot[slot.id] = slot.node_id
        for child_id in slot.children:
            parent_slot[child_id] = slot.id
            parent_node[child_id] = slot.node_id

    depth: dict[NodeId, int] = {doc.root: 0}
    queue: deque[NodeId] = deque([doc.root])
    while queue:
        node_id = queue.popleft()
        node = doc.nodes.get(node_id)
        if node is None:
            continue
        child_depth = depth[node_id] + 1
        for slot_id in node.slots:
            slot = doc.slots.get(slot_id)
            if slot is None:
                continue
            for child_id in slot.children:
                if child_id in depth:
                    continue
                depth[child_id] = child_depth
                queue.append(child_id)

    return DocumentIndexes(
        parent_slot_by_node_id=MappingProxyType(parent_slot),
        parent_node_by_node_id=MappingProxyType(parent_node),
        node_by_slot_id=MappingProxyType(node_by_slot),
        depth_by_node_id=MappingProxyType(depth),
    )


def get_ancestor_path(node_id: NodeId, indexes: DocumentIndexes, doc: TemplateDocument) -> list[NodeId]:
    """Return the ids from the root down to ``node_id`` (inclusive).

    Raises:
        StructureError: if the walk revisits a node or ends somewhere other
            than the document root.
    """

    path: list[NodeId] = []
    visited: set[NodeId] = set()
    current: NodeId | None = node_id
    while current is not None:
        if current in visited:
            raise StructureError(
                f"Cycle detected: node {current} appears twice in ancestor path", node_id=node_id
            )
        visited.add(current)
        path.append(current)
        current = indexes.parent_node_by_node_id.get(current)

    path.reverse()
    if path and path[0] != doc.root:
        raise StructureError(f"Node {node_id} is not connected to document root {doc.root}", node_id=node_id)
    return path


def is_ancestor(node_id: NodeId, ancestor_id: NodeId, indexes: DocumentIndexes) -> bool:
    """Return whether ``ancestor_id`` sits strictly above ``node_id``."""

    visited: set[NodeId] = set()
    current = indexes.parent_node_by_node_id.get(node_id)
    while current is not None:
        if current == ancestor_id:
            return True
        if current in visited:
            return False
        visited.add(current)
        current = indexes.parent_node_by_node_id.get(current)
    return False


def get_node_depth(node_id: NodeId, indexes: DocumentIndexes) -> int:
    """Depth of ``node_id`` (root = 0); unknown nodes report 0."""

    return indexes.depth_by_node_id.get(node_id, 0)


def find_ancestor_at_level(node_id: NodeId, target_level: int, indexes: DocumentIndexes) -> NodeId | None:
    """Walk up from ``node_id`` until reaching ``target_level``.

    Returns ``node_id`` itself when it is already at or above the level and
    ``None`` when the chain ends before the level is reached.
    """

    current = node_id
    level = indexes.depth_by_node_id.get(current, 0)
    while level > target_level:
        parent = indexes.parent_node_by_node_id.get(current)
        if parent is None:
            return None
        current = parent
        level -= 1
    return current


__all__ = [
    "DocumentIndexes",
    "build_indexes",
    "find_ancestor_at_level",
    "get_ancestor_path",
    "get_node_depth",
    "is_ancestor",
]
