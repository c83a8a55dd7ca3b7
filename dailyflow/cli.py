from __future__ import annotations

import argparse
import json
import logging
import sys

from . import __version__
from .ai import plan_to_dict
from .config import RuntimeConfig, build_generator, load_runtime_config
from .controller import ERROR_HEADING, PlannerController
from .errors import FormValidationError
from .form import PreferenceForm
from .ics import write_ics
from .log_config import configure_logging
from .models import DailyPlan, PlanLevel
from .paths import STORAGE_FILENAME
from .settings import SettingsStore
from .storage import LocalStorage

logger = logging.getLogger(__name__)


def open_settings_store(config: RuntimeConfig) -> SettingsStore:
    storage = LocalStorage(config.data_dir / STORAGE_FILENAME)
    logger.debug("Settings stored in %s", storage.path)
    return SettingsStore(storage)


def format_plan(plan: DailyPlan) -> str:
    lines: list[str] = [f'"{plan.quote}"', "", plan.focus_summary, ""]
    for item in plan.schedule:
        lines.append(f"{item.time}  [{item.category.value}] {item.activity}")
        if item.description.strip():
            lines.append(f"    {item.description}")
        if item.tip.strip():
            lines.append(f"    Tip: {item.tip}")
    return "\n".join(lines)


def _plan_cli(args: argparse.Namespace, config: RuntimeConfig) -> int:
    store = open_settings_store(config)
    form = PreferenceForm(store.current)
    if args.wake:
        form.set_wake_time(args.wake)
    if args.bed:
        form.set_bed_time(args.bed)
    form.set_goal(args.goal or "")
    form.set_progress(args.progress)
    if args.mood:
        form.select_mood(args.mood)
    form.set_level(args.level)
    try:
        prefs = form.submit()
    except FormValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 2

    controller = PlannerController(store, build_generator(config))
    if not controller.submit(prefs):
        print(f"{ERROR_HEADING}: {controller.error}", file=sys.stderr)
        return 1

    plan = controller.plan
    if plan is None:
        return 1
    if args.json:
        print(json.dumps(plan_to_dict(plan), indent=2, ensure_ascii=False))
    else:
        print(format_plan(plan))
    if args.ics:
        path = write_ics(plan, args.ics)
        print(f"Calendar written to {path}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dailyflow")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    parser.add_argument("--plan", action="store_true", help="Generate a plan without opening the window")
    parser.add_argument("--goal", help="Main goal for the day")
    parser.add_argument("--wake", help="Wake up time (HH:MM), defaults to the saved setting")
    parser.add_argument("--bed", help="Bedtime (HH:MM), defaults to the saved setting")
    parser.add_argument("--mood", help="Current mood or state")
    parser.add_argument(
        "--level",
        default=PlanLevel.BALANCED.value,
        choices=[level.value for level in PlanLevel],
        help="Structure level",
    )
    parser.add_argument("--progress", type=int, default=0, help="Goal progress in percent (0-100)")
    parser.add_argument("--ics", help="Also write the plan as an .ics calendar file")
    parser.add_argument("--json", action="store_true", help="Print the plan as JSON")
    parser.add_argument("--log-level", help="Override DAILYFLOW_LOG_LEVEL")
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    try:
        config = load_runtime_config()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    configure_logging(log_level=(args.log_level or config.log_level).upper())

    if args.plan:
        return _plan_cli(args, config)

    from .app import DailyFlowApp

    app = DailyFlowApp(config)
    app.mainloop()
    return 0
