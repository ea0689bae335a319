"""
Expands a draft's weekly availability into concrete schedules.

Exactly one week is expanded, starting at the anchor date: each enabled
weekday rolls forward to its next occurrence on or after the anchor. Days
that land before today are dropped whole.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from .shift_times import resolve_shift_window, shift_label
from .types import WEEKDAYS, ScheduleDraft, ScheduleInstance, Weekday


logger = logging.getLogger(__name__)


def date_for_weekday(anchor: date, day: Weekday) -> date:
    """Next date on or after anchor that falls on day."""
    offset = (day.index - anchor.weekday() + 7) % 7
    return anchor + timedelta(days=offset)


def expand_schedule(draft: ScheduleDraft, today: Optional[date] = None) -> list[ScheduleInstance]:
    """
    One ScheduleInstance per (enabled weekday, selected shift).

    Output is ordered Monday..Sunday, then by the order shifts were added
    to the day. An empty list is a valid result.
    """
    if draft.schedule_date is None:
        return []

    today = today or date.today()
    instances: list[ScheduleInstance] = []

    for day in WEEKDAYS:
        entry = draft.availability[day]
        if not entry.enabled or not entry.shifts:
            continue

        target_date = date_for_weekday(draft.schedule_date, day)
        if target_date < today:
            logger.debug(f"Skipping {day.value}: {target_date} is in the past")
            continue

        overrides = draft.custom_times.for_day(day)
        for shift_key in entry.shifts:
            window = resolve_shift_window(shift_key, overrides)
            instances.append(ScheduleInstance(
                name=f"{draft.title} - {shift_label(shift_key)}",
                type=draft.type,
                staff_id=draft.staff_id,
                date=target_date,
                branch_id=draft.branch_id,
                start_time=window.start,
                end_time=window.end,
                notes=draft.notes or None,
            ))

    return instances
