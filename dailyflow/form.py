from __future__ import annotations

import re
from dataclasses import replace

from .errors import FormValidationError
from .models import DEFAULT_MOOD, AppSettings, PlanLevel, UserPreferences

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class PreferenceForm:
    """Draft preferences for one plan request.

    Wake time, bed time and user name follow the settings; every other field
    keeps whatever the user typed when the settings change.
    """

    def __init__(self, settings: AppSettings):
        self._draft = UserPreferences(
            wake_time=settings.default_wake_time,
            bed_time=settings.default_bed_time,
            main_goal="",
            goal_progress=0,
            mood=DEFAULT_MOOD,
            level=PlanLevel.BALANCED,
            user_name=settings.user_name,
        )

    @property
    def draft(self) -> UserPreferences:
        return self._draft

    def apply_settings(self, settings: AppSettings) -> None:
        self._draft = replace(
            self._draft,
            wake_time=settings.default_wake_time,
            bed_time=settings.default_bed_time,
            user_name=settings.user_name,
        )

    def set_wake_time(self, value: str) -> None:
        self._draft = replace(self._draft, wake_time=value.strip())

    def set_bed_time(self, value: str) -> None:
        self._draft = replace(self._draft, bed_time=value.strip())

    def set_goal(self, value: str) -> None:
        self._draft = replace(self._draft, main_goal=value)

    def set_progress(self, value: int | float | str) -> None:
        try:
            progress = int(float(value))
        except (TypeError, ValueError):
            progress = 0
        self._draft = replace(self._draft, goal_progress=max(0, min(100, progress)))

    def select_mood(self, value: str) -> None:
        self._draft = replace(self._draft, mood=value)

    def set_level(self, value: PlanLevel | str) -> None:
        self._draft = replace(self._draft, level=PlanLevel(value))

    def submit(self) -> UserPreferences:
        draft = self._draft
        for label, value in (("Wake up time", draft.wake_time), ("Bedtime", draft.bed_time)):
            if not is_clock_time(value):
                raise FormValidationError(f"{label} must look like HH:MM, got {value!r}.")
        if not draft.main_goal.strip():
            raise FormValidationError("Main goal is required.")
        return draft


def is_clock_time(value: str) -> bool:
    match = _CLOCK_RE.match((value or "").strip())
    if not match:
        return False
    return int(match.group(1)) <= 23 and int(match.group(2)) <= 59
