"""
Scheduling service package.

Usage:
    from datetime import date
    from staffplan.services.scheduling import ScheduleDraft, toggle_shift, expand_schedule

    draft = ScheduleDraft(title="Front desk", staff_id="s1", branch_id="b1",
                          schedule_date=date(2025, 6, 2))
    toggle_shift(draft, "MONDAY", "MORNING")
    instances = expand_schedule(draft)

    # Or run the whole submission against a pair of stores
    from staffplan.services.scheduling import SubmissionCoordinator

    outcome = await SubmissionCoordinator(schedule_store, template_store).submit(draft)

The SQLAlchemy stores live in staffplan.services.scheduling.sql_stores and are
imported from there directly.
"""

from .types import (
    Weekday,
    WEEKDAYS,
    ShiftKind,
    ScheduleType,
    ScheduleStatus,
    TimeWindow,
    WeekdayAvailability,
    CustomTimeTable,
    AutoGenerateSettings,
    TemplateSettings,
    ShiftGroup,
    TemplateRecord,
    ScheduleInstance,
    ScheduleDraft,
)
from .errors import SchedulingError, FieldError, DraftValidationError, PersistenceError
from .availability import (
    toggle_day,
    toggle_shift,
    set_shift,
    set_time_range,
    set_custom_time,
    add_custom_shift,
    remove_custom_shift,
    reset_availability,
)
from .expander import expand_schedule
from .validation import validate_draft
from .templates import apply_template, clear_template, build_template_from_draft
from .submission import SubmissionCoordinator, SubmissionOutcome, SubmissionStatus

__all__ = [
    # Types
    "Weekday",
    "WEEKDAYS",
    "ShiftKind",
    "ScheduleType",
    "ScheduleStatus",
    "TimeWindow",
    "WeekdayAvailability",
    "CustomTimeTable",
    "AutoGenerateSettings",
    "TemplateSettings",
    "ShiftGroup",
    "TemplateRecord",
    "ScheduleInstance",
    "ScheduleDraft",
    # Errors
    "SchedulingError",
    "FieldError",
    "DraftValidationError",
    "PersistenceError",
    # Availability
    "toggle_day",
    "toggle_shift",
    "set_shift",
    "set_time_range",
    "set_custom_time",
    "add_custom_shift",
    "remove_custom_shift",
    "reset_availability",
    # Expansion / validation / templates
    "expand_schedule",
    "validate_draft",
    "apply_template",
    "clear_template",
    "build_template_from_draft",
    # Submission
    "SubmissionCoordinator",
    "SubmissionOutcome",
    "SubmissionStatus",
]
