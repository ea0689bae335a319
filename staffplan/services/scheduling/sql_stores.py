"""
SQLAlchemy-backed stores.
Converts between the ORM rows and the internal scheduling types.
Session calls run in a worker thread through asyncio.to_thread.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from staffplan.db.models.schedule_templates import ScheduleTemplates
from staffplan.db.models.schedules import Schedules

from .errors import PersistenceError
from .shift_times import format_hhmm, to_time
from .stores import BaseScheduleStore, BaseTemplateStore
from .types import (
    AutoGenerateSettings,
    ScheduleInstance,
    ShiftGroup,
    TemplateRecord,
    Weekday,
)


logger = logging.getLogger(__name__)


def schedule_from_row(row: Schedules) -> ScheduleInstance:
    return ScheduleInstance(
        id=row.id,
        name=row.name,
        type=row.type,
        staff_id=row.staff_id,
        date=row.schedule_date,
        branch_id=row.branch_id,
        start_time=format_hhmm(row.start_time),
        end_time=format_hhmm(row.end_time),
        status=row.status,
        max_capacity=row.max_capacity,
        current_bookings=row.current_bookings,
        notes=row.notes,
        is_recurring=row.is_recurring,
    )


def _shift_groups_to_json(groups: Optional[list[ShiftGroup]]) -> Optional[list[dict]]:
    if not groups:
        return None
    return [
        {
            "shift_type": g.shift_type,
            "start_time": g.start_time,
            "end_time": g.end_time,
            "days_of_week": [Weekday.parse(d).value for d in g.days_of_week],
        }
        for g in groups
    ]


def _shift_groups_from_json(data: Optional[list[dict]]) -> Optional[list[ShiftGroup]]:
    if not data:
        return None
    return [
        ShiftGroup(
            shift_type=g["shift_type"],
            start_time=g["start_time"],
            end_time=g["end_time"],
            days_of_week=[Weekday.parse(d) for d in g["days_of_week"]],
        )
        for g in data
    ]


def template_from_row(row: ScheduleTemplates) -> TemplateRecord:
    return TemplateRecord(
        id=row.id,
        name=row.name,
        description=row.description or "",
        type=row.type,
        branch_id=row.branch_id,
        staff_id=row.staff_id,
        staff_name=row.staff_name,
        class_id=row.class_id,
        days_of_week=[Weekday.parse(d) for d in row.days_of_week or []],
        start_time=format_hhmm(row.start_time),
        end_time=format_hhmm(row.end_time),
        notes=row.notes,
        shifts=_shift_groups_from_json(row.shifts),
        auto_generate=AutoGenerateSettings(
            enabled=row.auto_generate_enabled,
            advance_days=row.auto_generate_advance_days,
            end_date=row.auto_generate_end_date,
        ),
        max_capacity=row.max_capacity,
        priority=row.priority,
        is_active=row.is_active,
        usage_count=row.usage_count,
        last_used=row.last_used,
    )


class SqlScheduleStore(BaseScheduleStore):

    def __init__(self, db: Session):
        self.db = db

    async def create_batch(self, instances: list[ScheduleInstance]) -> list[ScheduleInstance]:
        if not instances:
            return []
        return await asyncio.to_thread(self._create_batch, instances)

    def _create_batch(self, instances: list[ScheduleInstance]) -> list[ScheduleInstance]:
        try:
            rows = [
                Schedules(
                    name=i.name,
                    type=i.type,
                    staff_id=i.staff_id,
                    branch_id=i.branch_id,
                    schedule_date=i.date,
                    start_time=to_time(i.start_time),
                    end_time=to_time(i.end_time),
                    status=i.status,
                    max_capacity=i.max_capacity,
                    current_bookings=i.current_bookings,
                    notes=i.notes,
                    is_recurring=i.is_recurring,
                )
                for i in instances
            ]
        except ValueError as e:
            logger.error(f"Batch schedule insert rejected: {e}")
            raise PersistenceError(f"Could not save schedules: {e}") from e

        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Batch schedule insert failed ({len(rows)} rows): {e}")
            raise PersistenceError("Could not save schedules") from e

        for row in rows:
            self.db.refresh(row)
        return [schedule_from_row(r) for r in rows]


class SqlTemplateStore(BaseTemplateStore):

    def __init__(self, db: Session, created_by: Optional[str] = None):
        self.db = db
        self.created_by = created_by

    async def create(self, record: TemplateRecord) -> int:
        return await asyncio.to_thread(self._create, record)

    def _create(self, record: TemplateRecord) -> int:
        try:
            start_time = to_time(record.start_time)
            end_time = to_time(record.end_time)
        except ValueError as e:
            logger.error(f"Template insert rejected for {record.name!r}: {e}")
            raise PersistenceError(f"Could not save template: {e}") from e

        row = ScheduleTemplates(
            name=record.name,
            description=record.description,
            type=record.type,
            branch_id=record.branch_id,
            staff_id=record.staff_id,
            staff_name=record.staff_name,
            class_id=record.class_id,
            days_of_week=[Weekday.parse(d).value for d in record.days_of_week],
            start_time=start_time,
            end_time=end_time,
            notes=record.notes,
            shifts=_shift_groups_to_json(record.shifts),
            max_capacity=record.max_capacity,
            priority=record.priority,
            is_active=record.is_active,
            auto_generate_enabled=record.auto_generate.enabled,
            auto_generate_advance_days=record.auto_generate.advance_days,
            auto_generate_end_date=record.auto_generate.end_date,
            usage_count=record.usage_count,
            created_by=self.created_by,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Template insert failed for {record.name!r}: {e}")
            raise PersistenceError("Could not save template") from e

        self.db.refresh(row)
        return row.id

    async def increment_usage(self, template_id: int) -> None:
        await asyncio.to_thread(self._increment_usage, template_id)

    def _increment_usage(self, template_id: int) -> None:
        row = self.db.get(ScheduleTemplates, template_id)
        if row is None:
            raise PersistenceError(f"Template {template_id} not found")

        row.usage_count += 1
        row.last_used = datetime.now(timezone.utc)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Usage increment failed for template {template_id}: {e}")
            raise PersistenceError("Could not update template usage") from e

    async def list_by_branch(self, branch_id: str, active_only: bool = True) -> list[TemplateRecord]:
        return await asyncio.to_thread(self._list_by_branch, branch_id, active_only)

    def _list_by_branch(self, branch_id: str, active_only: bool) -> list[TemplateRecord]:
        conditions = [ScheduleTemplates.branch_id == branch_id]
        if active_only:
            conditions.append(ScheduleTemplates.is_active == True)

        stmt = (
            select(ScheduleTemplates)
            .where(and_(*conditions))
            .order_by(ScheduleTemplates.priority.desc(), ScheduleTemplates.name)
        )
        rows = self.db.execute(stmt).scalars().all()
        return [template_from_row(r) for r in rows]

    async def get(self, template_id: int) -> Optional[TemplateRecord]:
        return await asyncio.to_thread(self._get, template_id)

    def _get(self, template_id: int) -> Optional[TemplateRecord]:
        row = self.db.get(ScheduleTemplates, template_id)
        return template_from_row(row) if row else None
