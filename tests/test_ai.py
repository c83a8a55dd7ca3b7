from __future__ import annotations

import json
import threading
import unittest

from dailyflow.ai import (
    PLAN_SCHEMA,
    SYSTEM_INSTRUCTION,
    PlanGenerator,
    build_plan_prompt,
    parse_plan,
    plan_to_dict,
)
from dailyflow.errors import (
    ConfigurationError,
    EmptyResponseError,
    PlanParseError,
    PlanRequestInProgress,
    ServiceError,
)
from dailyflow.models import ActivityCategory, PlanLevel, UserPreferences
from dailyflow.providers import to_json_schema


def _payload() -> dict:
    return {
        "quote": "Small steps every day.",
        "focusSummary": "  Ship the draft before lunch. Rest after.  ",
        "schedule": [
            {
                "time": "07:00 - 08:00",
                "activity": "Morning walk",
                "category": "Health",
                "description": "Get outside.",
                "tip": "Leave the phone at home.",
            },
            {
                "time": "08:00 - 10:00",
                "activity": " Deep work ",
                "category": "Work",
                "description": "Write the report body.",
                "tip": "One tab only.",
            },
        ],
    }


def _prefs(**overrides) -> UserPreferences:
    values = dict(
        wake_time="07:00",
        bed_time="23:00",
        main_goal="Finish report",
        goal_progress=40,
        mood="Energetic & Focused",
        level=PlanLevel.BALANCED,
        user_name="",
    )
    values.update(overrides)
    return UserPreferences(**values)


class StubTransport:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def generate_json(self, prompt, schema, system_instruction, temperature):
        self.calls.append(
            {
                "prompt": prompt,
                "schema": schema,
                "system_instruction": system_instruction,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text


def _generator(transport: StubTransport, api_key: str = "test-key", **kwargs) -> PlanGenerator:
    return PlanGenerator(api_key=api_key, transport_factory=lambda: transport, **kwargs)


class PlanGeneratorTests(unittest.TestCase):
    def test_conformant_payload_is_copied_verbatim(self) -> None:
        transport = StubTransport(json.dumps(_payload()))
        plan = _generator(transport).generate(_prefs())

        self.assertEqual(len(plan.schedule), 2)
        self.assertEqual(plan_to_dict(plan), _payload())
        self.assertEqual(plan.schedule[1].activity, " Deep work ")
        self.assertEqual(plan.schedule[0].category, ActivityCategory.HEALTH)

    def test_request_carries_schema_and_instruction(self) -> None:
        transport = StubTransport(json.dumps(_payload()))
        _generator(transport).generate(_prefs())

        self.assertEqual(len(transport.calls), 1)
        call = transport.calls[0]
        self.assertIs(call["schema"], PLAN_SCHEMA)
        self.assertEqual(call["system_instruction"], SYSTEM_INSTRUCTION)
        self.assertEqual(call["temperature"], 0.7)
        self.assertIn("Finish report", call["prompt"])

    def test_missing_key_fails_before_any_transport_call(self) -> None:
        transport = StubTransport(json.dumps(_payload()))
        built: list[StubTransport] = []

        def factory() -> StubTransport:
            built.append(transport)
            return transport

        generator = PlanGenerator(api_key="  ", transport_factory=factory)
        with self.assertRaises(ConfigurationError):
            generator.generate(_prefs())
        self.assertEqual(built, [])
        self.assertEqual(transport.calls, [])

    def test_local_provider_runs_without_key(self) -> None:
        transport = StubTransport(json.dumps(_payload()))
        plan = _generator(transport, api_key="", provider="local").generate(_prefs())
        self.assertEqual(len(plan.schedule), 2)

    def test_unsupported_provider_is_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            PlanGenerator(api_key="k", provider="carrier-pigeon")

    def test_service_error_propagates(self) -> None:
        transport = StubTransport(error=ServiceError("quota exceeded"))
        with self.assertRaisesRegex(ServiceError, "quota exceeded"):
            _generator(transport).generate(_prefs())

    def test_empty_text_is_generation_failure(self) -> None:
        with self.assertRaises(EmptyResponseError):
            _generator(StubTransport("   ")).generate(_prefs())

    def test_second_call_while_in_flight_is_refused(self) -> None:
        entered = threading.Event()
        release = threading.Event()
        results: list[object] = []

        class BlockingTransport(StubTransport):
            def generate_json(self, prompt, schema, system_instruction, temperature):
                entered.set()
                release.wait(timeout=5)
                return super().generate_json(prompt, schema, system_instruction, temperature)

        transport = BlockingTransport(json.dumps(_payload()))
        generator = _generator(transport)
        worker = threading.Thread(target=lambda: results.append(generator.generate(_prefs())))
        worker.start()
        try:
            self.assertTrue(entered.wait(timeout=5))
            self.assertTrue(generator.busy)
            with self.assertRaises(PlanRequestInProgress):
                generator.generate(_prefs())
        finally:
            release.set()
            worker.join(timeout=5)

        self.assertEqual(len(transport.calls), 1)
        self.assertEqual(len(results), 1)
        self.assertFalse(generator.busy)


class ParsePlanTests(unittest.TestCase):
    def test_parse_with_wrapped_text(self) -> None:
        raw = "Here is your plan:\n" + json.dumps(_payload()) + "\nEnjoy!"
        plan = parse_plan(raw)
        self.assertEqual(plan.quote, "Small steps every day.")

    def test_malformed_json_is_parse_error(self) -> None:
        with self.assertRaises(PlanParseError):
            parse_plan('{"quote": "x", "focusSummary": ')

    def test_missing_required_field_is_parse_error(self) -> None:
        payload = _payload()
        del payload["schedule"][0]["tip"]
        with self.assertRaisesRegex(PlanParseError, "tip"):
            parse_plan(json.dumps(payload))

    def test_unknown_category_is_parse_error(self) -> None:
        payload = _payload()
        payload["schedule"][1]["category"] = "Gaming"
        with self.assertRaisesRegex(PlanParseError, "Gaming"):
            parse_plan(json.dumps(payload))

    def test_schedule_must_be_list(self) -> None:
        payload = _payload()
        payload["schedule"] = {"time": "07:00 - 08:00"}
        with self.assertRaises(PlanParseError):
            parse_plan(json.dumps(payload))

    def test_none_text_is_empty_response(self) -> None:
        with self.assertRaises(EmptyResponseError):
            parse_plan(None)


class PromptTests(unittest.TestCase):
    def test_prompt_embeds_every_preference(self) -> None:
        prompt = build_plan_prompt(_prefs(user_name="Ada", level=PlanLevel.ADVANCED))
        self.assertIn("Create a daily schedule for Ada", prompt)
        self.assertIn("- Wake up time: 07:00", prompt)
        self.assertIn("- Bedtime: 23:00", prompt)
        self.assertIn('"Finish report"', prompt)
        self.assertIn("Current Goal Progress: 40%", prompt)
        self.assertIn('"Energetic & Focused"', prompt)
        self.assertIn('Intensity Level: "High Performance"', prompt)
        self.assertIn("- Basic Structure: Focus on essentials", prompt)

    def test_prompt_without_name_addresses_the_user(self) -> None:
        self.assertIn("for the user", build_plan_prompt(_prefs()))


class SchemaTests(unittest.TestCase):
    def test_schema_lists_all_categories(self) -> None:
        category = PLAN_SCHEMA["properties"]["schedule"]["items"]["properties"]["category"]
        self.assertEqual(category["enum"], ["Work", "Health", "Rest", "Learning", "Social", "Other"])

    def test_json_schema_conversion_lowercases_types(self) -> None:
        converted = to_json_schema(PLAN_SCHEMA)
        self.assertEqual(converted["type"], "object")
        self.assertEqual(converted["properties"]["schedule"]["type"], "array")
        self.assertEqual(converted["properties"]["schedule"]["items"]["properties"]["tip"]["type"], "string")
        self.assertEqual(converted["required"], ["quote", "focusSummary", "schedule"])


if __name__ == "__main__":
    unittest.main()
