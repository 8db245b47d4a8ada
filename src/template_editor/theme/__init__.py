"""Theme models and registry."""

from .manager import (
    BUILTIN_THEMES,
    ThemeManager,
    build_default_theme,
    build_letter_theme,
    create_default_theme_manager,
)
from .models import BlockStylePreset, Theme

__all__ = [
    "BUILTIN_THEMES",
    "BlockStylePreset",
    "Theme",
    "ThemeManager",
    "build_default_theme",
    "build_letter_theme",
    "create_default_theme_manager",
]
