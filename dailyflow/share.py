from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import DailyPlan

logger = logging.getLogger(__name__)

SHARE_TITLE = "My Daily Goal Plan"
NOT_SUPPORTED_MESSAGE = "Sharing is not supported on this system."
SHARE_FAILED_MESSAGE = "Could not share the plan."

ShareHandler = Callable[[str, str], None]


def build_share_text(plan: DailyPlan) -> str:
    lines = "\n".join(f"{item.time} - {item.activity}" for item in plan.schedule)
    return f"\U0001f3af My Goal Plan: {plan.focus_summary}\n\n{lines}"


def share_plan(plan: DailyPlan, handler: Optional[ShareHandler]) -> bool:
    """Hand the plan to the host share capability.

    Returns True only when the handler accepted the plan. A missing handler
    or one that raised returns False; the failure is logged.
    """
    if handler is None:
        return False
    try:
        handler(SHARE_TITLE, build_share_text(plan))
    except Exception as exc:  # noqa: BLE001
        logger.info("Error sharing: %s", exc)
        return False
    return True
