from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from dailyflow import __version__
from dailyflow.ai import PlanGenerator
from dailyflow.cli import main
from dailyflow.paths import STORAGE_FILENAME

_PLAN_JSON = json.dumps(
    {
        "quote": "Keep going.",
        "focusSummary": "Finish the report.",
        "schedule": [
            {
                "time": "07:00 - 08:00",
                "activity": "Walk",
                "category": "Health",
                "description": "Outside.",
                "tip": "No phone.",
            }
        ],
    }
)


class _FixedTransport:
    def generate_json(self, prompt, schema, system_instruction, temperature):
        return _PLAN_JSON


def _run(argv: list[str]) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err), mock.patch("dailyflow.cli.configure_logging"):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        env = mock.patch.dict(os.environ, {"DAILYFLOW_DATA_DIR": self._tmp.name}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def test_version(self) -> None:
        code, out, _ = _run(["--version"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), __version__)

    def test_missing_goal_is_rejected(self) -> None:
        code, _, err = _run(["--plan"])
        self.assertEqual(code, 2)
        self.assertIn("Invalid input", err)

    def test_missing_key_reports_generation_failure(self) -> None:
        code, out, err = _run(["--plan", "--goal", "Finish report"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Generation Failed", err)
        self.assertIn("API Key is missing", err)
        self.assertTrue((Path(self._tmp.name) / STORAGE_FILENAME).exists())

    def test_bad_provider_is_a_configuration_error(self) -> None:
        os.environ["DAILYFLOW_PROVIDER"] = "mystery"
        code, _, err = _run(["--plan", "--goal", "x"])
        self.assertEqual(code, 2)
        self.assertIn("DAILYFLOW_PROVIDER", err)

    def test_plan_prints_json_and_writes_calendar(self) -> None:
        target = Path(self._tmp.name) / "out.ics"
        generator = PlanGenerator(api_key="k", transport_factory=_FixedTransport)
        with mock.patch("dailyflow.cli.build_generator", return_value=generator):
            code, out, _ = _run(
                ["--plan", "--goal", "Finish report", "--progress", "40", "--json", "--ics", str(target)]
            )

        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["focusSummary"], "Finish the report.")
        self.assertEqual(payload["schedule"][0]["category"], "Health")
        self.assertIn(b"BEGIN:VEVENT", target.read_bytes())

    def test_plan_text_output(self) -> None:
        generator = PlanGenerator(api_key="k", transport_factory=_FixedTransport)
        with mock.patch("dailyflow.cli.build_generator", return_value=generator):
            code, out, _ = _run(["--plan", "--goal", "Finish report"])
        self.assertEqual(code, 0)
        self.assertIn('"Keep going."', out)
        self.assertIn("07:00 - 08:00  [Health] Walk", out)
        self.assertIn("Tip: No phone.", out)


if __name__ == "__main__":
    unittest.main()
