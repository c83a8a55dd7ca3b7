"""Persisted user settings.

The settings live as one JSON object under a fixed storage key. Loading merges
the stored object over the defaults so that fields added in later releases get
their default value for existing users. Every edit writes the full object back
synchronously and notifies subscribers (the preference form re-seeds itself
from them).
"""
from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Callable

from .errors import FormValidationError
from .form import is_clock_time
from .models import DEFAULT_SETTINGS, AppSettings, ThemeMode
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

SETTINGS_STORAGE_KEY = "dailyflow_settings"

_FIELD_KEYS = {
    "userName": "user_name",
    "defaultWakeTime": "default_wake_time",
    "defaultBedTime": "default_bed_time",
    "theme": "theme",
}
_TIME_FIELDS = {
    "default_wake_time": "Default wake time",
    "default_bed_time": "Default bedtime",
}

SettingsListener = Callable[[AppSettings], None]


def settings_to_dict(settings: AppSettings) -> dict[str, str]:
    return {
        "userName": settings.user_name,
        "defaultWakeTime": settings.default_wake_time,
        "defaultBedTime": settings.default_bed_time,
        "theme": settings.theme.value,
    }


def merge_settings(raw: Any, defaults: AppSettings = DEFAULT_SETTINGS) -> AppSettings:
    """Overlay a stored settings object onto ``defaults``.

    Unknown keys and values of the wrong type are ignored, so a partial or
    older object only fills in the fields it actually carries.
    """
    if not isinstance(raw, dict):
        return defaults
    changes: dict[str, Any] = {}
    for stored_key, field_name in _FIELD_KEYS.items():
        value = raw.get(stored_key)
        if not isinstance(value, str):
            continue
        if field_name == "theme":
            try:
                changes["theme"] = ThemeMode(value)
            except ValueError:
                logger.warning("Ignoring unknown theme %r in stored settings", value)
            continue
        if field_name in _TIME_FIELDS and not is_clock_time(value):
            logger.warning("Ignoring invalid %s %r in stored settings", field_name, value)
            continue
        changes[field_name] = value
    return replace(defaults, **changes)


class SettingsStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        defaults: AppSettings = DEFAULT_SETTINGS,
        key: str = SETTINGS_STORAGE_KEY,
    ):
        self._storage = storage
        self._defaults = defaults
        self._key = key
        self._listeners: list[SettingsListener] = []
        self._settings = self._load()

    @property
    def current(self) -> AppSettings:
        return self._settings

    @property
    def defaults(self) -> AppSettings:
        return self._defaults

    def _load(self) -> AppSettings:
        saved = self._storage.get_item(self._key)
        if not saved:
            return self._defaults
        try:
            parsed = json.loads(saved)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse settings, using defaults: %s", exc)
            return self._defaults
        if not isinstance(parsed, dict):
            logger.error("Stored settings are not an object, using defaults")
            return self._defaults
        return merge_settings(parsed, self._defaults)

    def save(self, settings: AppSettings) -> AppSettings:
        self._settings = settings
        self._storage.set_item(self._key, json.dumps(settings_to_dict(settings)))
        logger.debug("Settings saved: %s", settings_to_dict(settings))
        for listener in list(self._listeners):
            listener(settings)
        return settings

    def update(self, **changes: Any) -> AppSettings:
        """Save a partial change. Raises FormValidationError for a bad clock time."""
        for name, label in _TIME_FIELDS.items():
            if name in changes and not is_clock_time(changes[name]):
                raise FormValidationError(f"{label} must look like HH:MM, got {changes[name]!r}.")
        if "theme" in changes:
            changes["theme"] = ThemeMode(changes["theme"])
        return self.save(replace(self._settings, **changes))

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
