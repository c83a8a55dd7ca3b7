"""Screen state for the planner window.

The window shows either the preference form (no plan) or the plan display.
A successful submit moves to the plan; reset goes back to the form. A failed
submit stays on the form with an error message for the banner.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .ai import PlanGenerator
from .errors import PlanGenerationError, PlanRequestInProgress
from .models import DailyPlan, UserPreferences
from .settings import SettingsStore

logger = logging.getLogger(__name__)

ERROR_HEADING = "Generation Failed"
GENERIC_ERROR = "An error occurred while generating the plan."


@dataclass(frozen=True)
class PlanRequest:
    generation: int
    prefs: UserPreferences


class PlannerController:
    def __init__(self, settings: SettingsStore, generator: PlanGenerator):
        self.settings = settings
        self.generator = generator
        self.plan: DailyPlan | None = None
        self.current_prefs: UserPreferences | None = None
        self.error: str | None = None
        self._generation = 0
        self._pending: PlanRequest | None = None

    @property
    def showing_plan(self) -> bool:
        return self.plan is not None

    @property
    def loading(self) -> bool:
        """True until the outstanding request finishes, even after a reset."""
        return self._pending is not None

    def start_request(self, prefs: UserPreferences) -> PlanRequest:
        if self._pending is not None:
            raise PlanRequestInProgress("A plan is already being generated.")
        final_prefs = replace(prefs, user_name=self.settings.current.user_name)
        self._generation += 1
        self.error = None
        self._pending = PlanRequest(generation=self._generation, prefs=final_prefs)
        return self._pending

    def execute(self, request: PlanRequest) -> DailyPlan:
        return self.generator.generate(request.prefs)

    def complete_request(
        self,
        request: PlanRequest,
        plan: DailyPlan | None = None,
        error: BaseException | None = None,
    ) -> bool:
        """Apply a finished request. Returns False when it went stale."""
        if request is self._pending:
            self._pending = None
        if request.generation != self._generation:
            logger.info("Dropping stale plan response (request %d)", request.generation)
            return False
        if error is not None or plan is None:
            self.error = str(error or "") or GENERIC_ERROR
            logger.warning("Plan generation failed: %s", self.error)
            return True
        self.current_prefs = request.prefs
        self.plan = plan
        return True

    def submit(self, prefs: UserPreferences) -> bool:
        """Run a whole request on the calling thread. True on success."""
        request = self.start_request(prefs)
        try:
            plan = self.execute(request)
        except PlanGenerationError as exc:
            self.complete_request(request, error=exc)
            return False
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while generating a plan")
            self.complete_request(request, error=exc)
            return False
        self.complete_request(request, plan=plan)
        return True

    def dismiss_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        self._generation += 1
        self.plan = None
        self.current_prefs = None
        self.error = None
