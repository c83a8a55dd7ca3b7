from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable

from .errors import (
    ConfigurationError,
    EmptyResponseError,
    PlanParseError,
    PlanRequestInProgress,
)
from .models import ActivityCategory, DailyPlan, ScheduleItem, UserPreferences
from .providers import GeminiTransport, OpenAICompatibleTransport, PlanTransport, resolve_endpoint

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
PLAN_TEMPERATURE = 0.7
SUPPORTED_PROVIDERS = ("gemini", "openai", "local")
KEYED_PROVIDERS = {"gemini", "openai"}

SYSTEM_INSTRUCTION = (
    "You are an expert productivity coach and chronobiologist. "
    "You create schedules that optimize human energy levels."
)

PLAN_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "quote": {
            "type": "STRING",
            "description": "A motivating quote relevant to the user's goal and mood.",
        },
        "focusSummary": {
            "type": "STRING",
            "description": "A 2-sentence summary of how this day focuses on their goal.",
        },
        "schedule": {
            "type": "ARRAY",
            "description": "A chronological list of schedule items.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "time": {"type": "STRING", "description": "Time range (e.g., '07:00 - 08:00')"},
                    "activity": {"type": "STRING", "description": "Short title of the activity"},
                    "category": {
                        "type": "STRING",
                        "enum": [category.value for category in ActivityCategory],
                        "description": "Category of the activity",
                    },
                    "description": {"type": "STRING", "description": "Brief details about what to do"},
                    "tip": {
                        "type": "STRING",
                        "description": "A micro-habit or mindset tip for this specific block",
                    },
                },
                "required": ["time", "activity", "category", "description", "tip"],
            },
        },
    },
    "required": ["quote", "focusSummary", "schedule"],
}

_ITEM_FIELDS = ("time", "activity", "category", "description", "tip")

TransportFactory = Callable[[], PlanTransport]


class PlanGenerator:
    """Turns one set of preferences into a DailyPlan via an external model.

    Only one request may be outstanding per generator. A second call made
    while the first is still running fails with PlanRequestInProgress instead
    of reaching the provider.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        provider: str = "gemini",
        endpoint: str = "",
        timeout: float = 120.0,
        transport_factory: TransportFactory | None = None,
    ):
        provider = provider.strip().lower() or "gemini"
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(f"Unsupported provider: {provider}")
        self.provider = provider
        self.model = model.strip() or DEFAULT_MODEL
        self.endpoint = endpoint
        self.timeout = timeout
        self._api_key = api_key.strip()
        self._transport_factory = transport_factory
        self._transport: PlanTransport | None = None
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def generate(self, prefs: UserPreferences) -> DailyPlan:
        if self.provider in KEYED_PROVIDERS and not self._api_key:
            raise ConfigurationError(
                "API Key is missing. Please check your environment configuration."
            )
        if not self._in_flight.acquire(blocking=False):
            raise PlanRequestInProgress("A plan is already being generated.")
        try:
            transport = self._get_transport()
            prompt = build_plan_prompt(prefs)
            logger.info(
                "Requesting plan from provider=%s model=%s level=%s",
                self.provider,
                self.model,
                prefs.level.value,
            )
            text = transport.generate_json(
                prompt=prompt,
                schema=PLAN_SCHEMA,
                system_instruction=SYSTEM_INSTRUCTION,
                temperature=PLAN_TEMPERATURE,
            )
            plan = parse_plan(text)
            logger.info("Plan generated with %d schedule items", len(plan.schedule))
            return plan
        finally:
            self._in_flight.release()

    def _get_transport(self) -> PlanTransport:
        if self._transport is not None:
            return self._transport
        if self._transport_factory is not None:
            self._transport = self._transport_factory()
        elif self.provider == "gemini":
            self._transport = GeminiTransport(api_key=self._api_key, model=self.model)
        else:
            self._transport = OpenAICompatibleTransport(
                endpoint=resolve_endpoint(self.provider, self.endpoint),
                api_key=self._api_key,
                model=self.model,
                timeout=self.timeout,
            )
        return self._transport


def build_plan_prompt(prefs: UserPreferences) -> str:
    user_context = f"for {prefs.user_name}" if prefs.user_name else "for the user"
    return (
        f"Create a daily schedule {user_context} based on the following parameters:\n"
        f"- Wake up time: {prefs.wake_time}\n"
        f"- Bedtime: {prefs.bed_time}\n"
        f'- Main Goal for the day: "{prefs.main_goal}"\n'
        f"- Current Goal Progress: {prefs.goal_progress}% "
        "(Adjust the schedule intensity based on this. If 0%, focus on starting. "
        "If 90%, focus on finishing touches.)\n"
        f'- Current Mood/State: "{prefs.mood}"\n'
        f'- Intensity Level: "{prefs.level.value}"\n'
        "\n"
        "Context for Levels:\n"
        "- Basic Structure: Focus on essentials, low pressure, plenty of breaks. "
        "Good for low energy or weekends.\n"
        "- Balanced Flow: Standard productivity mixed with wellness.\n"
        "- High Performance: Tightly optimized, deep work blocks, bio-hacking tips, high output.\n"
        "\n"
        "Ensure the schedule fills the time between wake up and bed time.\n"
        "Format the output strictly as JSON."
    )


def parse_plan(text: str | None) -> DailyPlan:
    """Parse provider text into a DailyPlan, re-checking the schema locally."""
    if not text or not text.strip():
        raise EmptyResponseError("No plan generated.")
    data = _parse_ai_json(text)
    if not isinstance(data, dict):
        raise PlanParseError("AI response was not a JSON object.")

    quote = _require_str(data, "quote", "plan")
    focus_summary = _require_str(data, "focusSummary", "plan")
    raw_schedule = data.get("schedule")
    if not isinstance(raw_schedule, list):
        raise PlanParseError("AI response is missing the schedule list.")

    items: list[ScheduleItem] = []
    for index, entry in enumerate(raw_schedule):
        where = f"schedule[{index}]"
        if not isinstance(entry, dict):
            raise PlanParseError(f"{where} is not an object.")
        values = {name: _require_str(entry, name, where) for name in _ITEM_FIELDS}
        try:
            category = ActivityCategory(values["category"])
        except ValueError as exc:
            raise PlanParseError(
                f"{where} has unknown category {values['category']!r}."
            ) from exc
        items.append(
            ScheduleItem(
                time=values["time"],
                activity=values["activity"],
                category=category,
                description=values["description"],
                tip=values["tip"],
            )
        )
    return DailyPlan(quote=quote, focus_summary=focus_summary, schedule=tuple(items))


def plan_to_dict(plan: DailyPlan) -> dict[str, Any]:
    return {
        "quote": plan.quote,
        "focusSummary": plan.focus_summary,
        "schedule": [
            {
                "time": item.time,
                "activity": item.activity,
                "category": item.category.value,
                "description": item.description,
                "tip": item.tip,
            }
            for item in plan.schedule
        ],
    }


def _parse_ai_json(text: str) -> Any:
    trimmed = text.strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end == -1 or start >= end:
            raise PlanParseError("AI response did not contain valid JSON.")
        try:
            return json.loads(trimmed[start : end + 1])
        except json.JSONDecodeError as exc:
            raise PlanParseError("AI response contained invalid JSON.") from exc


def _require_str(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise PlanParseError(f"{where} is missing string field {key!r}.")
    return value
