"""Leave ORM models: LeaveType, LeavePolicy, LeaveRequest, LeaveApproval, LeaveEvidence, LeaveBalance."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_workflow.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaveType(Base):
    __tablename__ = "leave_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[Optional[str]] = mapped_column(sa.String(20), unique=True)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    max_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    policy: Mapped[Optional[LeavePolicy]] = relationship(back_populates="leave_type")
    requests: Mapped[list[LeaveRequest]] = relationship(back_populates="leave_type")


class LeavePolicy(Base):
    """One policy row per leave type.

    The ``eligibility_conditions`` / ``required_documents`` /
    ``frequency_rules`` / ``override_allowed`` governance columns were added
    by migration 002; environments still on the 001 schema lack them.
    """

    __tablename__ = "leave_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("leave_types.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    annual_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    eligibility: Mapped[str] = mapped_column(sa.String(20), default="all")
    min_tenure_months: Mapped[int] = mapped_column(sa.Integer, default=0)
    notice_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    accrual_mode: Mapped[str] = mapped_column(sa.String(20), default="calendar_days")
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    # Governance columns
    eligibility_conditions: Mapped[Optional[dict]] = mapped_column(JSONB)
    required_documents: Mapped[Optional[list]] = mapped_column(JSONB)
    frequency_rules: Mapped[Optional[dict]] = mapped_column(JSONB)
    override_allowed: Mapped[Optional[bool]] = mapped_column(sa.Boolean)

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    leave_type: Mapped[LeaveType] = relationship(back_populates="policy")


class LeaveRequest(Base):
    """Leave request. Created by the request API; the workflow updates its
    status and approval stage."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_requests_user_dates", "user_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False
    )
    leave_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_types.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    resume_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    days_count: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(sa.String(30), default="pending", index=True)
    approval_stage: Mapped[Optional[str]] = mapped_column(sa.String(30))
    reliever_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id")
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id")
    )
    requested_days_mode: Mapped[str] = mapped_column(
        sa.String(20), default="calendar_days"
    )
    rejected_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    hr_comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    original_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_requests.id")
    )
    request_kind: Mapped[str] = mapped_column(sa.String(20), default="standard")
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    leave_type: Mapped[LeaveType] = relationship(back_populates="requests")
    approvals: Mapped[list[LeaveApproval]] = relationship(
        back_populates="leave_request", order_by="LeaveApproval.approved_at"
    )
    evidence: Mapped[list[LeaveEvidence]] = relationship(
        back_populates="leave_request"
    )


class LeaveApproval(Base):
    """Append-only audit row, one per stage decision."""

    __tablename__ = "leave_approvals"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False
    )
    approval_level: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    approved_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )

    # Relationships
    leave_request: Mapped[LeaveRequest] = relationship(back_populates="approvals")


class LeaveEvidence(Base):
    __tablename__ = "leave_evidence"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id")
    )
    status: Mapped[str] = mapped_column(sa.String(20), default="pending")
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    verified_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id")
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    leave_request: Mapped[LeaveRequest] = relationship(back_populates="evidence")


class LeaveBalance(Base):
    """Yearly allowance per employee and leave type.

    ``used_days`` grows when leave is finally approved and shrinks again on
    cancellation or early return; it never goes below zero.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint(
            "user_id", "leave_type_id", "year", name="uq_leave_balance"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False
    )
    leave_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_types.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    allocated_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    used_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    leave_type: Mapped[LeaveType] = relationship()

    @property
    def balance_days(self) -> int:
        return self.allocated_days - self.used_days
