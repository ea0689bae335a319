from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, Time, Enum as SQLEnum, Index, func
from datetime import date, datetime, time
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from staffplan.db.database import Base
from staffplan.services.scheduling.types import ScheduleStatus, ScheduleType


class Schedules(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ScheduleType] = mapped_column(SQLEnum(ScheduleType, name="schedule_type_enum"), nullable=False)
    staff_id: Mapped[str] = mapped_column(String(64), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(64), nullable=False)
    schedule_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[ScheduleStatus] = mapped_column(SQLEnum(ScheduleStatus, name="schedule_status_enum"), nullable=False, default=ScheduleStatus.SCHEDULED)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_schedules_staff_date", "staff_id", "schedule_date"),
        Index("ix_schedules_branch_date", "branch_id", "schedule_date"),
    )
