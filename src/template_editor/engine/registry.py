"""Component registry: which node types exist and how they may nest.

Consulted by command validation (``can_contain``), palettes (``insertable``)
and node factories (``create_node``). Registries are plain instances; tests
and embedders may build as many as they like.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Literal

from ..model.document import Node, NodeId, Slot, new_id
from .errors import UnknownComponentError

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..model.document import TemplateDocument
    from .commands import CommandResult
    from .indexes import DocumentIndexes

LOGGER = logging.getLogger(__name__)

ComponentCategory = Literal["content", "layout", "logic", "page"]
ChildPolicy = Literal["all", "none", "allowlist", "denylist"]


@dataclass(slots=True, frozen=True)
class AllowedChildren:
    """Child placement policy of a component type."""

    mode: ChildPolicy = "all"
    types: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "types", frozenset(self.types))

    @classmethod
    def allow_all(cls) -> "AllowedChildren":
        return cls("all")

    @classmethod
    def allow_none(cls) -> "AllowedChildren":
        return cls("none")

    @classmethod
    def allowlist(cls, *types: str) -> "AllowedChildren":
        return cls("allowlist", frozenset(types))

    @classmethod
    def denylist(cls, *types: str) -> "AllowedChildren":
        return cls("denylist", frozenset(types))

    def permits(self, child_type: str) -> bool:
        if self.mode == "all":
            return True
        if self.mode == "none":
            return False
        if self.mode == "allowlist":
            return child_type in self.types
        if self.mode == "denylist":
            return child_type not in self.types
        raise ValueError(f"Unsupported child policy: {self.mode!r}")


@dataclass(slots=True, frozen=True)
class SlotTemplate:
    """Static slot declaration; dynamic templates are created on demand."""

    name: str
    dynamic: bool = False


@dataclass(slots=True, frozen=True)
class InspectorField:
    key: str
    label: str
    type: Literal["text", "number", "boolean", "select", "expression", "json", "color"]
    options: tuple[tuple[str, Any], ...] = ()
    default_value: Any = None


@dataclass(slots=True)
class Subtree:
    """Result of a ``create_subtree`` hook.

    ``slots`` are the new node's own slots (children already populated);
    ``extra_nodes`` and ``extra_slots`` are the descendants created with it.
    """

    slots: list[Slot]
    extra_nodes: list[Node] = field(default_factory=list)
    extra_slots: list[Slot] = field(default_factory=list)


@dataclass(slots=True)
class CreatedNode:
    """A freshly built node plus every slot and descendant it needs."""

    node: Node
    slots: tuple[Slot, ...]
    extra_nodes: tuple[Node, ...] = ()
    extra_slots: tuple[Slot, ...] = ()


InitialSlotsHook = Callable[[NodeId, "Mapping[str, Any] | None"], list[Slot]]
SubtreeHook = Callable[[NodeId, "Mapping[str, Any] | None"], Subtree]
CommandHandler = Callable[["TemplateDocument", "DocumentIndexes", Any], "CommandResult"]


@dataclass(slots=True)
class ComponentDefinition:
    """Declarative description of a node type and its extension hooks."""

    type: str
    label: str
    category: ComponentCategory = "content"
    slots: tuple[SlotTemplate, ...] = ()
    allowed_children: AllowedChildren = field(default_factory=AllowedChildren.allow_none)
    applicable_styles: Literal["all"] | tuple[str, ...] = "all"
    inspector: tuple[InspectorField, ...] = ()
    default_props: Mapping[str, Any] | None = None
    default_styles: Mapping[str, Any] | None = None
    icon: str | None = None
    hidden: bool = False
    create_initial_slots: InitialSlotsHook | None = None
    create_subtree: SubtreeHook | None = None
    # UI-facing hooks; the core stores them but never calls them.
    render_canvas: Callable[..., Any] | None = None
    render_inspector: Callable[..., Any] | None = None
    on_prop_change: Callable[[str, Any, Mapping[str, Any]], Mapping[str, Any]] | None = None
    on_before_insert: Callable[..., Any] | None = None
    command_types: tuple[str, ...] = ()
    command_handler: CommandHandler | None = None

    def supports_style(self, key: str) -> bool:
        if self.applicable_styles == "all":
            return True
        return key in self.applicable_styles


class ComponentRegistry:
    """Registry of component definitions keyed by node type."""

    def __init__(self, definitions: Iterable[ComponentDefinition] | None = None) -> None:
        self._definitions: dict[str, ComponentDefinition] = {}
        self._command_owners: dict[str, str] = {}
        for definition in definitions or ():
            self.register(definition)

    def register(self, definition: ComponentDefinition) -> None:
        previous = self._definitions.get(definition.type)
        if previous is not None:
            for command_type in previous.command_types:
                self._command_owners.pop(command_type, None)
            LOGGER.debug("Replacing component definition for '%s'", definition.type)
        self._definitions[definition.type] = definition
        for command_type in definition.command_types:
            self._command_owners[command_type] = definition.type

    def get(self, component_type: str) -> ComponentDefinition | None:
        return self._definitions.get(component_type)

    def get_or_raise(self, component_type: str) -> ComponentDefinition:
        definition = self._definitions.get(component_type)
        if definition is None:
            raise UnknownComponentError(component_type)
        return definition

    def has(self, component_type: str) -> bool:
        return component_type in self._definitions

    def all(self) -> list[ComponentDefinition]:
        return list(self._definitions.values())

    def insertable(self) -> list[ComponentDefinition]:
        """Return the definitions a user may pick from a palette."""

        return [definition for definition in self._definitions.values() if not definition.hidden]

    def command_handler_for(self, command_type: str) -> CommandHandler | None:
        """Return the component handler registered for ``command_type``, if any."""

        owner = self._command_owners.get(command_type)
        if owner is None:
            return None
        return self._definitions[owner].command_handler

    def can_contain(self, parent_type: str, child_type: str) -> bool:
        """Return whether a ``child_type`` node may sit in a slot of a ``parent_type`` node."""

        definition = self._definitions.get(parent_type)
        if definition is None:
            return False
        return definition.allowed_children.permits(child_type)

    def create_node(
        self,
        component_type: str,
        override_props: Mapping[str, Any] | None = None,
    ) -> CreatedNode:
        """Build a new node of ``component_type`` together with its initial slots.

        ``override_props`` are merged over a deep copy of the definition's
        ``default_props`` so the new node never shares state with the registry.
        """

        definition = self.get_or_raise(component_type)
        node_id = new_id()

        props: dict[str, Any] | None = None
        if definition.default_props is not None:
            props = copy.deepcopy(dict(definition.default_props))
        if override_props:
            props = {**(props or {}), **copy.deepcopy(dict(override_props))}

        if definition.create_subtree is not None:
            subtree = definition.create_subtree(node_id, props)
            node = Node(id=node_id, type=component_type, slots=tuple(s.id for s in subtree.slots), props=props)
            return CreatedNode(
                node=node,
                slots=tuple(subtree.slots) + tuple(subtree.extra_slots),
                extra_nodes=tuple(subtree.extra_nodes),
                extra_slots=tuple(subtree.extra_slots),
            )

        if definition.create_initial_slots is not None:
            slots = tuple(definition.create_initial_slots(node_id, props))
            node = Node(id=node_id, type=component_type, slots=tuple(s.id for s in slots), props=props)
            return CreatedNode(node=node, slots=slots)

        slots = tuple(
            Slot(id=new_id(), node_id=node_id, name=template.name)
            for template in definition.slots
            if not template.dynamic
        )
        node = Node(id=node_id, type=component_type, slots=tuple(s.id for s in slots), props=props)
        return CreatedNode(node=node, slots=slots)


__all__ = [
    "AllowedChildren",
    "CommandHandler",
    "ComponentDefinition",
    "ComponentRegistry",
    "CreatedNode",
    "InspectorField",
    "SlotTemplate",
    "Subtree",
]
