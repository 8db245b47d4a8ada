"""Editor engine: commands, indexes, undo history, styles and events."""

from .changes import Change, ChangeContext, CommandChange, TextChange
from .commands import (
    AddColumnSlot,
    Command,
    CommandError,
    CommandOk,
    CommandResult,
    ComponentCommand,
    InsertNode,
    MoveNode,
    RemoveColumnSlot,
    RemoveNode,
    SetStylePreset,
    UpdateDocumentStyles,
    UpdateNodeProps,
    UpdateNodeStyles,
    UpdatePageSettings,
    apply_command,
)
from .editor import EditorEngine
from .errors import EditorError, StructureError, UnknownCommandError, UnknownComponentError
from .events import (
    ComponentStateChanged,
    DocumentChanged,
    Event,
    EventBus,
    ExampleChanged,
    SelectionChanged,
)
from .indexes import (
    DocumentIndexes,
    build_indexes,
    find_ancestor_at_level,
    get_ancestor_path,
    get_node_depth,
    is_ancestor,
)
from .registry import (
    AllowedChildren,
    ComponentDefinition,
    ComponentRegistry,
    CreatedNode,
    InspectorField,
    SlotTemplate,
    Subtree,
)
from .schema_paths import FieldPath, extract_field_paths
from .style_registry import DEFAULT_STYLE_REGISTRY, StyleGroup, StyleProperty, StyleRegistry
from .undo import TextChangeOps, UndoStack

__all__ = [
    "AddColumnSlot",
    "AllowedChildren",
    "Change",
    "ChangeContext",
    "Command",
    "CommandChange",
    "CommandError",
    "CommandOk",
    "CommandResult",
    "ComponentCommand",
    "ComponentDefinition",
    "ComponentRegistry",
    "ComponentStateChanged",
    "CreatedNode",
    "DEFAULT_STYLE_REGISTRY",
    "DocumentChanged",
    "DocumentIndexes",
    "EditorEngine",
    "EditorError",
    "Event",
    "EventBus",
    "ExampleChanged",
    "FieldPath",
    "InsertNode",
    "InspectorField",
    "MoveNode",
    "RemoveColumnSlot",
    "RemoveNode",
    "SelectionChanged",
    "SetStylePreset",
    "SlotTemplate",
    "StructureError",
    "StyleGroup",
    "StyleProperty",
    "StyleRegistry",
    "Subtree",
    "TextChange",
    "TextChangeOps",
    "UndoStack",
    "UnknownCommandError",
    "UnknownComponentError",
    "UpdateDocumentStyles",
    "UpdateNodeProps",
    "UpdateNodeStyles",
    "UpdatePageSettings",
    "apply_command",
    "build_indexes",
    "extract_field_paths",
    "find_ancestor_at_level",
    "get_ancestor_path",
    "get_node_depth",
    "is_ancestor",
]
