"""Attendance ORM models: HolidayCalendarEntry, AttendanceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from datetime import date as date_type
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from leave_workflow.database import Base


class HolidayCalendarEntry(Base):
    """A dated entry in a location's holiday calendar.

    ``is_business_day`` marks an exception day that stays a working day
    (e.g. a holiday moved to a weekend).
    """

    __tablename__ = "holiday_calendar"
    __table_args__ = (
        sa.UniqueConstraint("location", "holiday_date", name="uq_holiday_location_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    location: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="global")
    holiday_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    is_business_day: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date_type] = mapped_column(sa.Date, nullable=False)
    status: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
