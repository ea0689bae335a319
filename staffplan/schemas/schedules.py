from pydantic import BaseModel
from datetime import date
from typing import Optional, Union

from staffplan.services.scheduling.errors import FieldError
from staffplan.services.scheduling.submission import SubmissionOutcome, SubmissionStatus
from staffplan.services.scheduling.types import (
    WEEKDAYS,
    AutoGenerateSettings,
    CustomTimeTable,
    ScheduleDraft,
    ScheduleInstance,
    ScheduleStatus,
    ScheduleType,
    StaffHint,
    TemplateSettings,
    TimeWindow,
    Weekday,
    WeekdayAvailability,
)


class TimeWindowSchema(BaseModel):
    start: str
    end: str


class DayAvailabilitySchema(BaseModel):
    enabled: bool = False
    shifts: list[str] = []
    start_time: str = "09:00"
    end_time: str = "17:00"


class AutoGenerateSchema(BaseModel):
    enabled: bool = False
    advance_days: int = 7
    end_date: Optional[date] = None


class TemplateSettingsSchema(BaseModel):
    save_as_template: bool = False
    name: str = ""
    description: str = ""
    auto_generate: AutoGenerateSchema = AutoGenerateSchema()


class StaffHintSchema(BaseModel):
    id: str
    name: str


class ScheduleDraftSchema(BaseModel):
    """Wire form of a ScheduleDraft. Days missing from availability are disabled."""
    title: str = ""
    staff_id: str = ""
    branch_id: str = ""
    schedule_date: Optional[date] = None
    type: ScheduleType = ScheduleType.FREE_TIME
    notes: Optional[str] = None
    timezone: Optional[str] = None
    time_range: TimeWindowSchema = TimeWindowSchema(start="09:00", end="17:00")
    availability: dict[Weekday, DayAvailabilitySchema] = {}
    custom_times: dict[Weekday, dict[str, TimeWindowSchema]] = {}
    template: TemplateSettingsSchema = TemplateSettingsSchema()
    source_template_id: Optional[Union[int, str]] = None
    staff_locked: bool = False
    staff_hint: Optional[StaffHintSchema] = None

    def to_draft(self) -> ScheduleDraft:
        draft = ScheduleDraft(
            title=self.title,
            staff_id=self.staff_id,
            branch_id=self.branch_id,
            schedule_date=self.schedule_date,
            type=self.type,
            notes=self.notes,
            timezone=self.timezone,
            time_range=TimeWindow(self.time_range.start, self.time_range.end),
            source_template_id=self.source_template_id,
            staff_locked=self.staff_locked,
            staff_hint=StaffHint(**self.staff_hint.model_dump()) if self.staff_hint else None,
        )
        for day, entry in self.availability.items():
            # disabled days carry no shifts
            draft.availability[day] = WeekdayAvailability(
                enabled=entry.enabled,
                shifts=list(dict.fromkeys(entry.shifts)) if entry.enabled else [],
                start_time=entry.start_time,
                end_time=entry.end_time,
            )
        draft.custom_times = CustomTimeTable({
            day: {key: TimeWindow(w.start, w.end) for key, w in overrides.items()}
            for day, overrides in self.custom_times.items()
        })
        auto = self.template.auto_generate
        draft.template = TemplateSettings(
            save_as_template=self.template.save_as_template,
            name=self.template.name,
            description=self.template.description,
            auto_generate=AutoGenerateSettings(
                enabled=auto.enabled,
                advance_days=auto.advance_days,
                end_date=auto.end_date,
            ),
        )
        return draft

    @classmethod
    def from_draft(cls, draft: ScheduleDraft) -> "ScheduleDraftSchema":
        auto = draft.template.auto_generate
        return cls(
            title=draft.title,
            staff_id=draft.staff_id,
            branch_id=draft.branch_id,
            schedule_date=draft.schedule_date,
            type=draft.type,
            notes=draft.notes,
            timezone=draft.timezone,
            time_range=TimeWindowSchema(start=draft.time_range.start, end=draft.time_range.end),
            availability={
                day: DayAvailabilitySchema(
                    enabled=draft.availability[day].enabled,
                    shifts=list(draft.availability[day].shifts),
                    start_time=draft.availability[day].start_time,
                    end_time=draft.availability[day].end_time,
                )
                for day in WEEKDAYS
            },
            custom_times={
                day: {key: TimeWindowSchema(start=w.start, end=w.end) for key, w in overrides.items()}
                for day, overrides in draft.custom_times.to_dict().items()
            },
            template=TemplateSettingsSchema(
                save_as_template=draft.template.save_as_template,
                name=draft.template.name,
                description=draft.template.description,
                auto_generate=AutoGenerateSchema(
                    enabled=auto.enabled,
                    advance_days=auto.advance_days,
                    end_date=auto.end_date,
                ),
            ),
            source_template_id=draft.source_template_id,
            staff_locked=draft.staff_locked,
            staff_hint=StaffHintSchema(id=draft.staff_hint.id, name=draft.staff_hint.name) if draft.staff_hint else None,
        )


class ScheduleResponse(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str
    type: ScheduleType
    staff_id: str
    schedule_date: date
    branch_id: str
    start_time: str
    end_time: str
    status: ScheduleStatus
    max_capacity: int
    current_bookings: int
    notes: Optional[str] = None
    is_recurring: bool

    @classmethod
    def from_instance(cls, instance: ScheduleInstance) -> "ScheduleResponse":
        return cls(
            id=instance.id,
            name=instance.name,
            type=instance.type,
            staff_id=instance.staff_id,
            schedule_date=instance.date,
            branch_id=instance.branch_id,
            start_time=instance.start_time,
            end_time=instance.end_time,
            status=instance.status,
            max_capacity=instance.max_capacity,
            current_bookings=instance.current_bookings,
            notes=instance.notes,
            is_recurring=instance.is_recurring,
        )


class FieldErrorSchema(BaseModel):
    field: str
    message: str


class SubmissionResponse(BaseModel):
    status: SubmissionStatus
    message: str
    schedules: list[ScheduleResponse] = []
    template_id: Optional[Union[int, str]] = None
    field_errors: list[FieldErrorSchema] = []

    @classmethod
    def from_outcome(cls, outcome: SubmissionOutcome) -> "SubmissionResponse":
        return cls(
            status=outcome.status,
            message=outcome.message,
            schedules=[ScheduleResponse.from_instance(i) for i in outcome.instances],
            template_id=outcome.template_id,
            field_errors=[_field_error(e) for e in outcome.field_errors],
        )


def _field_error(error: FieldError) -> FieldErrorSchema:
    return FieldErrorSchema(field=error.field, message=error.message)
