from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Union

from staffplan.schemas.schedules import AutoGenerateSchema
from staffplan.services.scheduling import template_codec
from staffplan.services.scheduling.types import (
    AutoGenerateSettings,
    ScheduleType,
    ShiftGroup,
    TemplateRecord,
    Weekday,
)


class ShiftGroupSchema(BaseModel):
    shift_type: str
    start_time: str
    end_time: str
    days_of_week: list[Weekday]


class ScheduleTemplateBase(BaseModel):
    name: str
    description: str = ""
    type: ScheduleType
    branch_id: str
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    class_id: Optional[str] = None
    days_of_week: list[Weekday]
    start_time: str
    end_time: str
    notes: Optional[str] = None
    max_capacity: int = 1
    priority: int = 1


class ScheduleTemplateCreate(ScheduleTemplateBase):
    shifts: Optional[list[ShiftGroupSchema]] = None
    auto_generate: AutoGenerateSchema = AutoGenerateSchema()

    def to_record(self) -> TemplateRecord:
        shifts = None
        if self.shifts:
            shifts = [ShiftGroup(**s.model_dump()) for s in self.shifts]
        notes = self.notes
        # clients that only read notes still need the groups
        if shifts and not template_codec.decode(notes):
            notes = template_codec.encode(shifts)
        return TemplateRecord(
            name=self.name.strip(),
            description=self.description,
            type=self.type,
            branch_id=self.branch_id,
            staff_id=self.staff_id,
            staff_name=self.staff_name,
            class_id=self.class_id,
            days_of_week=list(self.days_of_week),
            start_time=self.start_time,
            end_time=self.end_time,
            notes=notes,
            shifts=shifts,
            auto_generate=AutoGenerateSettings(**self.auto_generate.model_dump()),
            max_capacity=self.max_capacity,
            priority=self.priority,
        )


class ScheduleTemplateResponse(ScheduleTemplateBase):
    id: Union[int, str]
    shifts: list[ShiftGroupSchema]
    auto_generate: AutoGenerateSchema
    is_active: bool
    usage_count: int
    last_used: Optional[datetime] = None
    shift_count: int
    has_multiple_shifts: bool
    time_display: str
    detailed_time_display: str

    @classmethod
    def from_record(cls, record: TemplateRecord) -> "ScheduleTemplateResponse":
        auto = record.auto_generate
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            type=record.type,
            branch_id=record.branch_id,
            staff_id=record.staff_id,
            staff_name=record.staff_name,
            class_id=record.class_id,
            days_of_week=record.days_of_week,
            start_time=record.start_time,
            end_time=record.end_time,
            notes=record.notes,
            max_capacity=record.max_capacity,
            priority=record.priority,
            shifts=[
                ShiftGroupSchema(
                    shift_type=g.shift_type,
                    start_time=g.start_time,
                    end_time=g.end_time,
                    days_of_week=g.days_of_week,
                )
                for g in template_codec.all_shifts(record)
            ],
            auto_generate=AutoGenerateSchema(
                enabled=auto.enabled,
                advance_days=auto.advance_days,
                end_date=auto.end_date,
            ),
            is_active=record.is_active,
            usage_count=record.usage_count,
            last_used=record.last_used,
            shift_count=template_codec.shift_count(record),
            has_multiple_shifts=template_codec.has_multiple_shifts(record),
            time_display=template_codec.time_display(record),
            detailed_time_display=template_codec.detailed_time_display(record),
        )
