"""Colors and labels for the timeline; no widgets here."""
from __future__ import annotations

from dataclasses import dataclass

from .models import ActivityCategory, ThemeMode, UserPreferences


@dataclass(frozen=True)
class CategoryStyle:
    background: str
    foreground: str
    border: str
    dot: str
    dashed: bool = False


_LIGHT: dict[ActivityCategory, CategoryStyle] = {
    ActivityCategory.WORK: CategoryStyle("#18181b", "#ffffff", "#18181b", "#18181b"),
    ActivityCategory.HEALTH: CategoryStyle("#ffffff", "#18181b", "#e4e4e7", "#ffffff"),
    ActivityCategory.REST: CategoryStyle("#f4f4f5", "#52525b", "#e4e4e7", "#d4d4d8"),
    ActivityCategory.LEARNING: CategoryStyle("#fafafa", "#27272a", "#d4d4d8", "#e4e4e7"),
    ActivityCategory.SOCIAL: CategoryStyle("#fafafa", "#3f3f46", "#a1a1aa", "#e4e4e7", dashed=True),
}
_LIGHT_DEFAULT = CategoryStyle("#ffffff", "#71717a", "#f4f4f5", "#e4e4e7")

_DARK: dict[ActivityCategory, CategoryStyle] = {
    ActivityCategory.WORK: CategoryStyle("#ffffff", "#000000", "#ffffff", "#ffffff"),
    ActivityCategory.HEALTH: CategoryStyle("#18181b", "#f4f4f5", "#3f3f46", "#27272a"),
    ActivityCategory.REST: CategoryStyle("#27272a", "#a1a1aa", "#3f3f46", "#52525b"),
    ActivityCategory.LEARNING: CategoryStyle("#1c1c1f", "#e4e4e7", "#52525b", "#3f3f46"),
    ActivityCategory.SOCIAL: CategoryStyle("#000000", "#d4d4d8", "#71717a", "#3f3f46", dashed=True),
}
_DARK_DEFAULT = CategoryStyle("#09090b", "#71717a", "#27272a", "#3f3f46")


def category_style(category: ActivityCategory, dark: bool = False) -> CategoryStyle:
    if dark:
        return _DARK.get(category, _DARK_DEFAULT)
    return _LIGHT.get(category, _LIGHT_DEFAULT)


def appearance_mode(theme: ThemeMode) -> str:
    """Name customtkinter uses for ``set_appearance_mode``."""
    return theme.value.capitalize()


def progress_label(prefs: UserPreferences | None) -> str | None:
    if prefs is None or prefs.goal_progress <= 0:
        return None
    return f"Current Progress: {prefs.goal_progress}%"
