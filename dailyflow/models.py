from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PlanLevel(str, Enum):
    BASIC = "Basic Structure"
    BALANCED = "Balanced Flow"
    ADVANCED = "High Performance"


class ActivityCategory(str, Enum):
    WORK = "Work"
    HEALTH = "Health"
    REST = "Rest"
    LEARNING = "Learning"
    SOCIAL = "Social"
    OTHER = "Other"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


@dataclass(frozen=True)
class UserPreferences:
    wake_time: str
    bed_time: str
    main_goal: str
    goal_progress: int
    mood: str
    level: PlanLevel
    user_name: str = ""


@dataclass(frozen=True)
class ScheduleItem:
    time: str
    activity: str
    category: ActivityCategory
    description: str
    tip: str


@dataclass(frozen=True)
class DailyPlan:
    quote: str
    focus_summary: str
    schedule: tuple[ScheduleItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AppSettings:
    user_name: str = ""
    default_wake_time: str = "07:00"
    default_bed_time: str = "23:00"
    theme: ThemeMode = ThemeMode.SYSTEM


@dataclass(frozen=True)
class Mood:
    label: str
    emoji: str
    value: str


MOODS: tuple[Mood, ...] = (
    Mood("Energetic", "⚡", "Energetic & Focused"),
    Mood("Calm", "\U0001f9d8", "Calm & Steady"),
    Mood("Creative", "\U0001f3a8", "Creative & Spontaneous"),
    Mood("Tired", "\U0001f50b", "Tired / Low Energy"),
    Mood("Anxious", "\U0001f32c️", "Anxious / Overwhelmed"),
)

DEFAULT_MOOD = MOODS[0].value
DEFAULT_SETTINGS = AppSettings()
