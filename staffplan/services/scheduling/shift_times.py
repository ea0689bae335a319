"""
Shift time registry and shift key helpers.

Shift keys are plain strings:
    "MORNING" / "AFTERNOON" / "EVENING"   named shifts with registry defaults
    "CUSTOM"                              legacy tag, times live in the day's "CUSTOM" override
    "CUSTOM_09:30-11:00"                  custom shift, times encoded in the key itself
"""

import re
from datetime import time
from typing import Mapping, Optional

from .types import ShiftKind, ShiftSelector, TimeWindow


SHIFT_TIMES: dict[ShiftKind, TimeWindow] = {
    ShiftKind.MORNING: TimeWindow("08:00", "12:00"),
    ShiftKind.AFTERNOON: TimeWindow("13:00", "17:00"),
    ShiftKind.EVENING: TimeWindow("18:00", "22:00"),
}

SHIFT_LABELS: dict[ShiftKind, str] = {
    ShiftKind.MORNING: "Morning",
    ShiftKind.AFTERNOON: "Afternoon",
    ShiftKind.EVENING: "Evening",
}

CUSTOM_TAG = "CUSTOM"
CUSTOM_KEY_PREFIX = "CUSTOM_"

FALLBACK_WINDOW = TimeWindow("08:00", "17:00")
EMPTY_CUSTOM_WINDOW = TimeWindow("00:00", "00:00")

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_CUSTOM_KEY_RE = re.compile(r"^CUSTOM_(\d{2}:\d{2})-(\d{2}:\d{2})$")


def is_valid_hhmm(value: Optional[str]) -> bool:
    return bool(value) and _HHMM_RE.match(value) is not None


def hhmm_to_minutes(value: str) -> int:
    """Parse HH:MM to minutes since midnight. Raises ValueError on bad input."""
    match = _HHMM_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def to_time(value: str) -> time:
    minutes = hhmm_to_minutes(value)
    return time(minutes // 60, minutes % 60)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def normalize_hhmm(value: str) -> str:
    """Accept HH:MM or HH:MM:SS, return HH:MM."""
    if value and re.match(r"^\d{2}:\d{2}:\d{2}$", value):
        return value[:5]
    return value


def custom_shift_key(window: TimeWindow) -> str:
    return f"{CUSTOM_KEY_PREFIX}{window.start}-{window.end}"


def is_custom_key(shift_key: str) -> bool:
    return shift_key == CUSTOM_TAG or shift_key.startswith(CUSTOM_KEY_PREFIX)


def parse_custom_key(shift_key: str) -> Optional[TimeWindow]:
    """Window encoded in a CUSTOM_HH:MM-HH:MM key, or None if it doesn't parse."""
    match = _CUSTOM_KEY_RE.match(shift_key)
    if not match:
        return None
    start, end = match.groups()
    if not (is_valid_hhmm(start) and is_valid_hhmm(end)):
        return None
    return TimeWindow(start, end)


def parse_shift_key(shift_key: str) -> ShiftSelector:
    if shift_key in ShiftKind.__members__:
        return ShiftSelector(key=shift_key, kind=ShiftKind(shift_key))
    if shift_key.startswith(CUSTOM_KEY_PREFIX):
        return ShiftSelector(key=shift_key, window=parse_custom_key(shift_key))
    return ShiftSelector(key=shift_key)


def get_shift_time(shift_key: str, overrides: Optional[Mapping[str, TimeWindow]] = None) -> TimeWindow:
    """
    Effective window for a shift on one day.

    overrides is that day's slice of the CustomTimeTable. Falls back to the
    registry default, then to 08:00-17:00. Never raises.
    """
    if overrides and shift_key in overrides:
        return overrides[shift_key]
    if shift_key in ShiftKind.__members__:
        return SHIFT_TIMES[ShiftKind(shift_key)]
    return FALLBACK_WINDOW


def resolve_shift_window(shift_key: str, overrides: Optional[Mapping[str, TimeWindow]] = None) -> TimeWindow:
    """
    Window used when expanding a shift into a concrete schedule.

    Named shifts go through get_shift_time. The bare CUSTOM tag reads the
    day's CUSTOM override (00:00-00:00 if there is none). CUSTOM_HH:MM-HH:MM
    keys carry their own window.
    """
    if shift_key == CUSTOM_TAG:
        if overrides and CUSTOM_TAG in overrides:
            return overrides[CUSTOM_TAG]
        return EMPTY_CUSTOM_WINDOW
    if shift_key.startswith(CUSTOM_KEY_PREFIX):
        return parse_custom_key(shift_key) or FALLBACK_WINDOW
    return get_shift_time(shift_key, overrides)


def shift_label(shift_key: str) -> str:
    selector = parse_shift_key(shift_key)
    if selector.kind is not None:
        return SHIFT_LABELS[selector.kind]
    if selector.window is not None:
        return f"{selector.window.start}-{selector.window.end}"
    if shift_key == CUSTOM_TAG:
        return "Custom"
    return shift_key
