"""iCalendar export of a generated plan."""
from __future__ import annotations

import logging
import re
import uuid
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

from icalendar import Alarm, Calendar, Event

from .models import DailyPlan, ScheduleItem

logger = logging.getLogger(__name__)

ICS_FILENAME = "goal_schedule.ics"
ICS_MIME_TYPE = "text/calendar"
PRODID = "-//Goal App//EN"

_TIME_RANGE_RE = re.compile(r"(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})")


def parse_time_range(value: str) -> tuple[time, time] | None:
    """Pull a start/end clock pair out of labels like ``7:00 - 8:30``."""
    match = _TIME_RANGE_RE.search(value or "")
    if not match:
        return None
    start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        return None
    return time(start_h, start_m), time(end_h, end_m)


def event_window(
    item: ScheduleItem, day: date, after: datetime | None = None
) -> tuple[datetime, datetime] | None:
    """Place ``item`` on ``day``, or on the next day if it would start before ``after``."""
    parsed = parse_time_range(item.time)
    if parsed is None:
        return None
    start = datetime.combine(day, parsed[0])
    if after is not None and start < after:
        start += timedelta(days=1)
    end = datetime.combine(start.date(), parsed[1])
    # blocks running past midnight end on the following day
    if end < start:
        end += timedelta(days=1)
    return start, end


def build_calendar(plan: DailyPlan, day: date | None = None) -> Calendar:
    day = day or date.today()
    stamp = datetime.now(timezone.utc).replace(microsecond=0)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    skipped = 0
    previous_start: datetime | None = None
    for item in plan.schedule:
        window = event_window(item, day, after=previous_start)
        if window is None:
            skipped += 1
            continue
        start, end = window
        # later blocks stay on the day the schedule has rolled over to
        day = start.date()
        previous_start = start

        event = Event()
        event.add("uid", f"{uuid.uuid4().hex}@dailyflow")
        event.add("dtstamp", stamp)
        event.add("summary", item.activity)
        event.add("dtstart", start)
        event.add("dtend", end)
        event.add("description", f"{item.description} - Tip: {item.tip}")

        alarm = Alarm()
        alarm.add("action", "DISPLAY")
        alarm.add("description", item.activity)
        alarm.add("trigger", timedelta(0))
        event.add_component(alarm)

        cal.add_component(event)

    if skipped:
        logger.info("Calendar export skipped %d item(s) without a time range", skipped)
    return cal


def build_ics(plan: DailyPlan, day: date | None = None) -> str:
    return build_calendar(plan, day).to_ical().decode("utf-8")


def write_ics(plan: DailyPlan, target: Path | str, day: date | None = None) -> Path:
    path = Path(target)
    path.write_bytes(build_calendar(plan, day).to_ical())
    logger.info("Exported calendar: %s", path)
    return path
