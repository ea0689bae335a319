from typing import Optional
from datetime import date, datetime, time
from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String, Text, Time, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from staffplan.db.database import Base
from staffplan.services.scheduling.types import ScheduleType


class ScheduleTemplates(Base):
    __tablename__ = "schedule_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[ScheduleType] = mapped_column(SQLEnum(ScheduleType, name="schedule_type_enum"), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    staff_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    staff_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    class_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    days_of_week: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    # multi-shift payload, kept for clients that only read notes
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shifts: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    auto_generate_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_generate_advance_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    auto_generate_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
