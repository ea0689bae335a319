"""
Weekly availability mutations.
All edits to a draft's availability go through here so the day/shift
invariants hold:
    enabled=False  =>  no shifts
    removing the last shift disables the day
    adding a shift to a disabled day enables it
"""

from typing import Literal, Optional

from .shift_times import CUSTOM_TAG, custom_shift_key
from .types import ScheduleDraft, TimeWindow, Weekday

TimeField = Literal["start_time", "end_time"]


def toggle_day(draft: ScheduleDraft, day: Weekday | str) -> bool:
    """
    Flip a day on/off. Returns the new enabled state.

    Enabling leaves the (possibly empty) shift list alone, for legacy
    time-range-only days. Disabling drops the day's shifts.
    """
    entry = draft.day(day)
    entry.enabled = not entry.enabled
    if not entry.enabled:
        entry.shifts = []
    return entry.enabled


def toggle_shift(draft: ScheduleDraft, day: Weekday | str, shift_key: str) -> bool:
    """Add or remove a shift on a day. Returns True if the shift is now selected."""
    entry = draft.day(day)

    if shift_key in entry.shifts:
        entry.shifts = [s for s in entry.shifts if s != shift_key]
        selected = False
    else:
        entry.shifts = [*entry.shifts, shift_key]
        selected = True

    if not entry.shifts:
        entry.enabled = False
    elif not entry.enabled:
        entry.enabled = True

    return selected


def set_shift(draft: ScheduleDraft, day: Weekday | str, shift_key: str, checked: bool) -> None:
    """Idempotent form of toggle_shift, for checkbox-style input."""
    if (shift_key in draft.day(day).shifts) != checked:
        toggle_shift(draft, day, shift_key)


def set_time_range(draft: ScheduleDraft, day: Weekday | str, field: TimeField, value: str) -> None:
    """
    Set a day's legacy start/end time.
    If the day is enabled the shared top-level time range follows it.
    """
    entry = draft.day(day)
    setattr(entry, field, value)

    if entry.enabled:
        _set_top_level(draft, field, value)


def sync_time_range(draft: ScheduleDraft, field: TimeField, value: str) -> None:
    """Set the top-level range and copy the field onto every enabled day."""
    _set_top_level(draft, field, value)
    for day in draft.enabled_days:
        setattr(draft.availability[day], field, value)


def fill_time_range_from_day(draft: ScheduleDraft, day: Weekday | str) -> None:
    entry = draft.day(day)
    if entry.enabled:
        draft.time_range = TimeWindow(entry.start_time, entry.end_time)


def _set_top_level(draft: ScheduleDraft, field: TimeField, value: str) -> None:
    if field == "start_time":
        draft.time_range = TimeWindow(value, draft.time_range.end)
    else:
        draft.time_range = TimeWindow(draft.time_range.start, value)


# ==================== Custom times ====================

def set_custom_time(
    draft: ScheduleDraft,
    day: Weekday | str,
    shift_key: str,
    window: Optional[TimeWindow],
) -> None:
    """Override a shift's time on one day; None reverts to the default."""
    draft.custom_times.set_override(day, shift_key, window)


def add_custom_shift(draft: ScheduleDraft, day: Weekday | str, window: TimeWindow) -> str:
    """
    Add a user-defined shift to a day. Returns its synthesized key.
    The window is also recorded as the day's CUSTOM override.
    """
    key = custom_shift_key(window)
    set_shift(draft, day, key, True)
    draft.custom_times.set_override(day, CUSTOM_TAG, window)
    return key


def remove_custom_shift(draft: ScheduleDraft, day: Weekday | str, shift_key: str) -> None:
    set_shift(draft, day, shift_key, False)
    draft.custom_times.remove(day, shift_key)


def reset_availability(draft: ScheduleDraft) -> None:
    """Disable every day and drop all overrides."""
    for entry in draft.availability.values():
        entry.enabled = False
        entry.shifts = []
    draft.custom_times.clear()
