"""Core HR ORM models consumed by the leave workflow: Profile, EmployeeLifeEvent."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_workflow.database import Base


class Profile(Base):
    """Employee profile. Owned by the HR admin surface; read-only here."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    full_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    company_email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    additional_email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    is_department_lead: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    role: Mapped[str] = mapped_column(sa.String(30), default="employee")
    location: Mapped[Optional[str]] = mapped_column(sa.String(100))

    # Eligibility attributes
    gender: Mapped[Optional[str]] = mapped_column(sa.String(20))
    employment_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    employment_type: Mapped[Optional[str]] = mapped_column(sa.String(30))
    marital_status: Mapped[Optional[str]] = mapped_column(sa.String(20))
    has_children: Mapped[Optional[bool]] = mapped_column(sa.Boolean)
    pregnancy_status: Mapped[Optional[str]] = mapped_column(sa.String(20))

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    life_events: Mapped[list[EmployeeLifeEvent]] = relationship(
        back_populates="employee"
    )


class EmployeeLifeEvent(Base):
    __tablename__ = "employee_life_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    event_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    employee: Mapped[Profile] = relationship(back_populates="life_events")
