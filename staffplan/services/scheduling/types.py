"""
Internal data types for the availability/template engine.
decoupled from SQLAlchemy models and API schemas for cleaner logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union


# local db rows use int ids, the upstream API uses string object ids
RecordId = Union[int, str]


class Weekday(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        """0 = Monday ... 6 = Sunday, same as date.weekday()."""
        return WEEKDAYS.index(self)

    @classmethod
    def parse(cls, value: "str | Weekday") -> "Weekday":
        if isinstance(value, Weekday):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown weekday: {value!r}") from None


WEEKDAYS: list[Weekday] = list(Weekday)


class ShiftKind(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"


class ScheduleType(str, Enum):
    CLASS = "CLASS"
    PERSONAL_TRAINING = "PERSONAL_TRAINING"
    FREE_TIME = "FREE_TIME"
    MAINTENANCE = "MAINTENANCE"


class ScheduleStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class TimeWindow:
    """Clock window as HH:MM strings, same day (no wraparound)."""
    start: str
    end: str


@dataclass(frozen=True)
class ShiftSelector:
    """
    Parsed view of a shift key.
    Either a named kind, or a custom window (start/end may be unknown for the
    bare legacy "CUSTOM" tag).
    """
    key: str
    kind: Optional[ShiftKind] = None
    window: Optional[TimeWindow] = None

    @property
    def is_custom(self) -> bool:
        return self.kind is None


@dataclass
class WeekdayAvailability:
    enabled: bool = False
    shifts: list[str] = field(default_factory=list)  # shift keys, insertion ordered
    start_time: str = "09:00"  # legacy single-range fallback
    end_time: str = "17:00"


def empty_week() -> dict[Weekday, WeekdayAvailability]:
    return {day: WeekdayAvailability() for day in WEEKDAYS}


class CustomTimeTable:
    """
    Per-(weekday, shift key) time overrides.
    A missing entry means "use the registry default". Entries for keys no
    longer in the day's shift list are kept but never consulted.
    """

    def __init__(self, entries: Optional[dict[Weekday, dict[str, TimeWindow]]] = None):
        self._entries: dict[Weekday, dict[str, TimeWindow]] = {}
        for day, overrides in (entries or {}).items():
            for key, window in overrides.items():
                self.set_override(day, key, window)

    def set_override(self, day: "Weekday | str", shift_key: str, window: Optional[TimeWindow]) -> None:
        """Set an override; None clears it and reverts to the default."""
        day = Weekday.parse(day)
        if window is None:
            self.remove(day, shift_key)
            return
        self._entries.setdefault(day, {})[shift_key] = window

    def get_override(self, day: "Weekday | str", shift_key: str) -> Optional[TimeWindow]:
        return self._entries.get(Weekday.parse(day), {}).get(shift_key)

    def for_day(self, day: "Weekday | str") -> dict[str, TimeWindow]:
        return dict(self._entries.get(Weekday.parse(day), {}))

    def remove(self, day: "Weekday | str", shift_key: str) -> None:
        overrides = self._entries.get(Weekday.parse(day))
        if overrides is None:
            return
        overrides.pop(shift_key, None)
        if not overrides:
            del self._entries[Weekday.parse(day)]

    def reset_day(self, day: "Weekday | str") -> None:
        self._entries.pop(Weekday.parse(day), None)

    def clear(self) -> None:
        self._entries.clear()

    def to_dict(self) -> dict[Weekday, dict[str, TimeWindow]]:
        return {day: dict(overrides) for day, overrides in self._entries.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CustomTimeTable):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"CustomTimeTable({self._entries!r})"


@dataclass
class AutoGenerateSettings:
    enabled: bool = False
    advance_days: int = 7
    end_date: Optional[date] = None


@dataclass
class TemplateSettings:
    """Save-as-template choices made during an editing session."""
    save_as_template: bool = False
    name: str = ""
    description: str = ""
    auto_generate: AutoGenerateSettings = field(default_factory=AutoGenerateSettings)


@dataclass
class StaffHint:
    id: str
    name: str


@dataclass
class ShiftGroup:
    """One shift kind and the weekdays that use it, as stored in a template."""
    shift_type: str
    start_time: str
    end_time: str
    days_of_week: list[Weekday] = field(default_factory=list)


@dataclass
class TemplateRecord:
    name: str
    type: ScheduleType
    branch_id: str
    days_of_week: list[Weekday]
    start_time: str
    end_time: str
    description: str = ""
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    class_id: Optional[str] = None
    notes: Optional[str] = None  # TemplateCodec payload
    shifts: Optional[list[ShiftGroup]] = None
    auto_generate: AutoGenerateSettings = field(default_factory=AutoGenerateSettings)
    max_capacity: int = 1
    priority: int = 1
    is_active: bool = True
    usage_count: int = 0
    last_used: Optional[datetime] = None
    id: Optional[RecordId] = None


@dataclass
class ScheduleInstance:
    """A concrete, dated schedule produced by expansion."""
    name: str
    type: ScheduleType
    staff_id: str
    date: date
    branch_id: str
    start_time: str
    end_time: str
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    max_capacity: int = 1
    current_bookings: int = 0
    notes: Optional[str] = None
    is_recurring: bool = False
    id: Optional[RecordId] = None


@dataclass
class ScheduleDraft:
    """
    The single editing session's configuration.
    Owned by one session, mutated in place by the availability/template
    functions, discarded after submission.
    """
    title: str = ""
    staff_id: str = ""
    branch_id: str = ""
    schedule_date: Optional[date] = None  # anchor date
    type: ScheduleType = ScheduleType.FREE_TIME
    notes: Optional[str] = None
    timezone: Optional[str] = None
    time_range: TimeWindow = field(default_factory=lambda: TimeWindow("09:00", "17:00"))
    availability: dict[Weekday, WeekdayAvailability] = field(default_factory=empty_week)
    custom_times: CustomTimeTable = field(default_factory=CustomTimeTable)
    template: TemplateSettings = field(default_factory=TemplateSettings)
    source_template_id: Optional[RecordId] = None
    staff_locked: bool = False
    staff_hint: Optional[StaffHint] = None

    def day(self, day: "Weekday | str") -> WeekdayAvailability:
        return self.availability[Weekday.parse(day)]

    @property
    def enabled_days(self) -> list[Weekday]:
        return [d for d in WEEKDAYS if self.availability[d].enabled]
