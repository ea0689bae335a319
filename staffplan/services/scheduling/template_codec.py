"""
Multi-shift template payload.

A template row only has one start/end time, so templates with several shifts
per day carry their shift groups as JSON in the template's notes field:

    {"multipleShifts":true,"shifts":[{"shiftType":"MORNING","startTime":"08:00",
     "endTime":"12:00","daysOfWeek":["MONDAY","TUESDAY"]}]}

The string is kept byte-compatible with what the web client writes
(JSON.stringify: compact separators, key order as above).
"""

import json
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .types import ShiftGroup, TemplateRecord, Weekday


logger = logging.getLogger(__name__)


class ShiftGroupPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shift_type: str = Field(alias="shiftType")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    days_of_week: list[Weekday] = Field(alias="daysOfWeek")


class MultipleShiftsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    multiple_shifts: bool = Field(default=False, alias="multipleShifts")
    shifts: list[ShiftGroupPayload]


def encode(groups: list[ShiftGroup]) -> str:
    payload = {
        "multipleShifts": True,
        "shifts": [
            {
                "shiftType": g.shift_type,
                "startTime": g.start_time,
                "endTime": g.end_time,
                "daysOfWeek": [Weekday.parse(d).value for d in g.days_of_week],
            }
            for g in groups
        ],
    }
    return json.dumps(payload, separators=(",", ":"))


def decode(payload: Optional[str]) -> Optional[list[ShiftGroup]]:
    """
    Shift groups from a notes payload, or None for a legacy single-shift
    template (no payload, free-text notes, bad JSON, or multipleShifts unset).
    """
    if not payload:
        return None

    try:
        parsed = MultipleShiftsPayload.model_validate_json(payload)
    except ValidationError as e:
        logger.debug(f"Template notes are not a multi-shift payload: {e.error_count()} error(s)")
        return None

    if not parsed.multiple_shifts:
        return None

    return [
        ShiftGroup(
            shift_type=s.shift_type,
            start_time=s.start_time,
            end_time=s.end_time,
            days_of_week=list(s.days_of_week),
        )
        for s in parsed.shifts
    ]


# ==================== Template summaries ====================

def template_shift_groups(template: TemplateRecord) -> Optional[list[ShiftGroup]]:
    """First-class shift groups if the record has them, else the decoded notes."""
    if template.shifts:
        return template.shifts
    return decode(template.notes)


def all_shifts(template: TemplateRecord) -> list[ShiftGroup]:
    groups = template_shift_groups(template)
    if groups:
        return groups
    return [ShiftGroup(
        shift_type="Main Shift",
        start_time=template.start_time,
        end_time=template.end_time,
        days_of_week=list(template.days_of_week),
    )]


def shift_count(template: TemplateRecord) -> int:
    groups = template_shift_groups(template)
    return len(groups) if groups is not None else 1


def has_multiple_shifts(template: TemplateRecord) -> bool:
    return shift_count(template) > 1


def time_display(template: TemplateRecord) -> str:
    if has_multiple_shifts(template):
        return f"{template.start_time} - {template.end_time} ({shift_count(template)} ca)"
    return f"{template.start_time} - {template.end_time}"


def detailed_time_display(template: TemplateRecord) -> str:
    if has_multiple_shifts(template):
        return ", ".join(f"{g.start_time}-{g.end_time}" for g in template_shift_groups(template))
    return f"{template.start_time} - {template.end_time}"
