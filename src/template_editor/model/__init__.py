"""Document model: nodes, slots and immutable template snapshots."""

from .document import (
    INHERIT_THEME,
    MODEL_VERSION,
    ROOT_TYPE,
    Margins,
    Node,
    NodeId,
    PageSettings,
    Slot,
    SlotId,
    TemplateDocument,
    create_empty_document,
    freeze_document,
    new_id,
    validate_document,
)

__all__ = [
    "INHERIT_THEME",
    "MODEL_VERSION",
    "Margins",
    "Node",
    "NodeId",
    "PageSettings",
    "ROOT_TYPE",
    "Slot",
    "SlotId",
    "TemplateDocument",
    "create_empty_document",
    "freeze_document",
    "new_id",
    "validate_document",
]
