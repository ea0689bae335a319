"""
Draft validation rules.

Each rule is a pure function returning None when the value passes or a
human-readable message when it fails. validate_draft runs them in a fixed
order and stops at the first failure.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

from staffplan.core.config import settings

from .errors import DraftValidationError, FieldError
from .shift_times import hhmm_to_minutes, is_custom_key, parse_custom_key, shift_label
from .types import WEEKDAYS, ScheduleDraft

logger = logging.getLogger(__name__)

DateLike = Union[date, str, None]

MIN_ADVANCE_DAYS = 1
MAX_ADVANCE_DAYS = 30


def coerce_date(value: DateLike) -> Optional[date]:
    """date, ISO 'YYYY-MM-DD' string, or None/''. Raises ValueError on junk."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def add_months(value: date, months: int = 1) -> date:
    """Calendar-month arithmetic, clamped to the end of shorter months."""
    return value + relativedelta(months=months)


def local_today(tz_name: Optional[str] = None) -> date:
    """Today's date in tz_name, or in settings.DEFAULT_TIMEZONE when unset or unknown."""
    default = settings.DEFAULT_TIMEZONE
    try:
        tz = ZoneInfo(tz_name or default)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, using {default}")
        tz = ZoneInfo(default)
    return datetime.now(tz).date()


def validate_schedule_date(value: DateLike, today: Optional[date] = None) -> Optional[str]:
    today = today or date.today()
    try:
        schedule_date = coerce_date(value)
    except ValueError:
        return "Schedule date is not a valid date"

    if schedule_date is None:
        return "Schedule date is required"
    # today itself is rejected
    if schedule_date <= today:
        return "Schedule date must be in the future"
    return None


def validate_time_range(start: Optional[str], end: Optional[str]) -> Optional[str]:
    if not start or not end:
        return "Start time and end time are required"
    try:
        start_minutes = hhmm_to_minutes(start)
        end_minutes = hhmm_to_minutes(end)
    except ValueError:
        return "Times must use the HH:MM format"

    if end_minutes <= start_minutes:
        return "End time must be after start time"
    return None


def validate_end_date(
    end_date: DateLike,
    schedule_date: DateLike = None,
    today: Optional[date] = None,
) -> Optional[str]:
    today = today or date.today()
    try:
        end = coerce_date(end_date)
        anchor = coerce_date(schedule_date)
    except ValueError:
        return "End date is not a valid date"

    if end is None:
        return "End date is required for auto-generation"

    if anchor is not None:
        if end <= anchor:
            return "End date must be after the schedule date"
        if end < add_months(anchor, 1):
            return "End date must be at least one month after the schedule date"
        return None

    if end <= today + timedelta(days=1):
        return "End date must be after tomorrow"
    return None


def validate_advance_days(value: Optional[int]) -> Optional[str]:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        return "Advance days must be a whole number"
    if value < MIN_ADVANCE_DAYS or value > MAX_ADVANCE_DAYS:
        return f"Advance days must be between {MIN_ADVANCE_DAYS} and {MAX_ADVANCE_DAYS}"
    return None


def validate_template_name(name: Optional[str]) -> Optional[str]:
    if not name or not name.strip():
        return "Template name is required"
    return None


def validate_custom_times(draft: ScheduleDraft) -> Optional[str]:
    """
    Check every window that expansion will actually use: overrides for the
    selected shifts of enabled days, and windows encoded in CUSTOM_HH:MM-HH:MM
    keys. A bare CUSTOM tag without an override is left alone.
    """
    for day in WEEKDAYS:
        entry = draft.availability[day]
        if not entry.enabled:
            continue

        overrides = draft.custom_times.for_day(day)
        for shift_key in entry.shifts:
            window = overrides.get(shift_key)
            if window is None and is_custom_key(shift_key):
                window = parse_custom_key(shift_key)
            if window is None:
                continue

            message = validate_time_range(window.start, window.end)
            if message:
                return f"{day.value.title()} {shift_label(shift_key)}: {message}"
    return None


def validate_required_fields(draft: ScheduleDraft) -> Optional[FieldError]:
    required = [
        ("title", draft.title, "Schedule title is required"),
        ("staff_id", draft.staff_id, "Staff selection is required"),
        ("branch_id", draft.branch_id, "Branch selection is required"),
    ]
    for field, value, message in required:
        if not value or not str(value).strip():
            return FieldError(field, message)
    return None


def validate_draft(draft: ScheduleDraft, today: Optional[date] = None) -> Optional[FieldError]:
    """
    Run every rule that applies to the draft, in submission order:
    required fields, schedule date, legacy time range, per-day shift
    windows, template name, then auto-generation end date and advance days.
    """
    today = today or date.today()

    error = validate_required_fields(draft)
    if error:
        return error

    rules: list[tuple[str, Callable[[], Optional[str]]]] = [
        ("schedule_date", lambda: validate_schedule_date(draft.schedule_date, today)),
    ]

    if draft.time_range.start or draft.time_range.end:
        rules.append(("time_range", lambda: validate_time_range(draft.time_range.start, draft.time_range.end)))
    rules.append(("custom_times", lambda: validate_custom_times(draft)))

    settings = draft.template
    if settings.save_as_template:
        rules.append(("template_name", lambda: validate_template_name(settings.name)))

        if settings.auto_generate.enabled:
            rules.append(("end_date", lambda: validate_end_date(
                settings.auto_generate.end_date, draft.schedule_date, today,
            )))
            rules.append(("advance_days", lambda: validate_advance_days(settings.auto_generate.advance_days)))

    for field, rule in rules:
        message = rule()
        if message:
            return FieldError(field, message)
    return None


def ensure_valid_draft(draft: ScheduleDraft, today: Optional[date] = None) -> None:
    """Raise DraftValidationError for the first failing rule."""
    error = validate_draft(draft, today)
    if error:
        raise DraftValidationError(error)
