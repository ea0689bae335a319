"""
Template orchestration: seeding a draft from a stored template, and building
a template record from the current draft.
"""

import logging
from datetime import date, datetime
from typing import Optional

from . import template_codec
from .availability import reset_availability, set_shift
from .shift_times import resolve_shift_window
from .types import (
    WEEKDAYS,
    AutoGenerateSettings,
    CustomTimeTable,
    ScheduleDraft,
    ScheduleType,
    ShiftGroup,
    ShiftKind,
    StaffHint,
    TemplateRecord,
    TemplateSettings,
    TimeWindow,
)
from .validation import add_months


logger = logging.getLogger(__name__)

# shifts given to each day of a template saved before multi-shift support
LEGACY_DAY_SHIFTS = [ShiftKind.MORNING.value, ShiftKind.AFTERNOON.value]
DEFAULT_STAFF_LABEL = "Personal Trainer"
DEFAULT_ADVANCE_DAYS = 7


def apply_template(template: TemplateRecord, draft: ScheduleDraft) -> ScheduleDraft:
    """
    Load a template into the draft, replacing its weekly availability.

    Multi-shift templates rebuild every (day, shift) with the group's time as
    an override. Legacy templates enable their days with a morning and an
    afternoon shift and the template's single time range.
    """
    draft.title = template.name
    draft.type = template.type
    draft.time_range = TimeWindow(template.start_time, template.end_time)
    draft.source_template_id = template.id

    auto = template.auto_generate
    draft.template = TemplateSettings(
        save_as_template=True,
        name=template.name,
        description=template.description or "",
        auto_generate=AutoGenerateSettings(
            enabled=auto.enabled,
            advance_days=auto.advance_days or DEFAULT_ADVANCE_DAYS,
            end_date=auto.end_date,
        ),
    )

    if template.branch_id:
        draft.branch_id = template.branch_id

    if template.staff_id:
        draft.staff_id = template.staff_id
        draft.staff_locked = True
        draft.staff_hint = StaffHint(id=template.staff_id, name=template.staff_name or DEFAULT_STAFF_LABEL)
    else:
        # class-bound or unbound templates leave staff selection open
        draft.staff_locked = False
        draft.staff_hint = None

    reset_availability(draft)

    groups = template_codec.template_shift_groups(template)
    if groups:
        for group in groups:
            window = TimeWindow(group.start_time, group.end_time)
            for day in group.days_of_week:
                set_shift(draft, day, group.shift_type, True)
                draft.custom_times.set_override(day, group.shift_type, window)
        logger.info(f"Applied multi-shift template {template.id} ({len(groups)} shift group(s))")
    else:
        for day in template.days_of_week:
            for shift_key in LEGACY_DAY_SHIFTS:
                set_shift(draft, day, shift_key, True)
            entry = draft.day(day)
            entry.start_time = template.start_time
            entry.end_time = template.end_time
        logger.info(f"Applied legacy template {template.id} to {len(template.days_of_week)} day(s)")

    return draft


def clear_template(draft: ScheduleDraft) -> ScheduleDraft:
    """Undo a template selection. Availability and schedule date are kept."""
    draft.source_template_id = None
    draft.staff_locked = False
    draft.staff_hint = None
    draft.staff_id = ""
    draft.branch_id = ""
    draft.type = ScheduleType.FREE_TIME
    draft.time_range = TimeWindow("09:00", "17:00")
    draft.template = TemplateSettings()
    return draft


def build_shift_groups(draft: ScheduleDraft, overrides: Optional[CustomTimeTable] = None) -> list[ShiftGroup]:
    """
    One group per distinct shift key used on an enabled day, in first-seen
    order. A group's time is the first override found across its days,
    otherwise the shift's default window.
    """
    overrides = overrides if overrides is not None else draft.custom_times

    shift_keys: list[str] = []
    for day in draft.enabled_days:
        for key in draft.availability[day].shifts:
            if key not in shift_keys:
                shift_keys.append(key)

    groups = []
    for key in shift_keys:
        days = [d for d in draft.enabled_days if key in draft.availability[d].shifts]

        window = next(
            (w for w in (overrides.get_override(d, key) for d in days) if w is not None),
            None,
        )
        if window is None:
            window = resolve_shift_window(key, overrides.for_day(days[0]))

        groups.append(ShiftGroup(
            shift_type=key,
            start_time=window.start,
            end_time=window.end,
            days_of_week=days,
        ))

    return groups


def build_template_from_draft(draft: ScheduleDraft, overrides: Optional[CustomTimeTable] = None) -> TemplateRecord:
    groups = build_shift_groups(draft, overrides)

    # summary time only matters to readers that don't understand shift groups
    if groups:
        start_time, end_time = groups[0].start_time, groups[0].end_time
    else:
        start_time, end_time = draft.time_range.start or "09:00", draft.time_range.end or "17:00"

    settings = draft.template
    if settings.auto_generate.enabled:
        auto_generate = AutoGenerateSettings(
            enabled=True,
            advance_days=settings.auto_generate.advance_days,
            end_date=settings.auto_generate.end_date,
        )
    else:
        auto_generate = AutoGenerateSettings(enabled=False, advance_days=DEFAULT_ADVANCE_DAYS)

    return TemplateRecord(
        name=settings.name.strip(),
        description=settings.description,
        type=draft.type,
        branch_id=draft.branch_id,
        staff_id=draft.staff_id or None,
        staff_name=draft.staff_hint.name if draft.staff_hint else None,
        days_of_week=[d for d in WEEKDAYS if draft.availability[d].enabled],
        start_time=start_time,
        end_time=end_time,
        notes=template_codec.encode(groups) if groups else None,
        shifts=groups or None,
        auto_generate=auto_generate,
    )


def default_template_name(title: str, now: Optional[datetime] = None) -> str:
    """Title plus a timestamp, so repeated saves don't collide."""
    now = now or datetime.now()
    return f"{title} - {now.strftime('%Y-%m-%dT%H-%M-%S')}"


def enable_save_as_template(draft: ScheduleDraft, now: Optional[datetime] = None) -> None:
    draft.template.save_as_template = True
    if draft.title and draft.source_template_id is None:
        draft.template.name = default_template_name(draft.title, now)


def enable_auto_generate(draft: ScheduleDraft, today: Optional[date] = None) -> AutoGenerateSettings:
    """
    Turn auto-generation on. With no end date yet, default it to one month
    after the schedule date. The default is set once, here; later changes
    to advance_days leave it alone.
    """
    auto = draft.template.auto_generate
    auto.enabled = True
    if auto.end_date is None:
        anchor = draft.schedule_date or today or date.today()
        auto.end_date = add_months(anchor, 1)
    return auto


def disable_auto_generate(draft: ScheduleDraft) -> None:
    draft.template.auto_generate.enabled = False
