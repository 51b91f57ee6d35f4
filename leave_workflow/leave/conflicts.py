"""Conflict checkers — requester overlap and reliever availability.

Two requests conflict when ``existing.start <= new.end AND existing.end >=
new.start`` and the existing one is still pending, awaiting evidence or
approved. These checks do not lock: the request API must run them and the
insert in one transaction, and migration 003 adds an exclusion constraint
that rejects a racing insert at the database.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import ACTIVE_LEAVE_STATUSES
from leave_workflow.common.dates import parse_iso_date
from leave_workflow.common.exceptions import StoreException, ValidationException
from leave_workflow.leave.models import LeaveRequest


async def _has_active_leave(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_date: date | str,
    end_date: date | str,
    exclude_request_id: Optional[uuid.UUID],
) -> bool:
    query = select(LeaveRequest.id).where(
        LeaveRequest.user_id == user_id,
        LeaveRequest.status.in_([s.value for s in ACTIVE_LEAVE_STATUSES]),
        LeaveRequest.start_date <= parse_iso_date(end_date),
        LeaveRequest.end_date >= parse_iso_date(start_date),
    )
    if exclude_request_id is not None:
        query = query.where(LeaveRequest.id != exclude_request_id)

    result = await db.execute(query.limit(1))
    return result.first() is not None


async def assert_no_overlap(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_date: date | str,
    end_date: date | str,
    exclude_request_id: Optional[uuid.UUID] = None,
) -> None:
    try:
        conflict = await _has_active_leave(db, user_id, start_date, end_date, exclude_request_id)
    except SQLAlchemyError as exc:
        raise StoreException("Failed to validate overlapping leave") from exc

    if conflict:
        raise ValidationException(
            {"dates": ["You already have an overlapping leave request for this date range"]}
        )


async def assert_reliever_availability(
    db: AsyncSession,
    reliever_id: uuid.UUID,
    start_date: date | str,
    end_date: date | str,
    exclude_request_id: Optional[uuid.UUID] = None,
) -> None:
    try:
        conflict = await _has_active_leave(db, reliever_id, start_date, end_date, exclude_request_id)
    except SQLAlchemyError as exc:
        raise StoreException("Failed to validate reliever availability") from exc

    if conflict:
        raise ValidationException(
            {"reliever_id": ["Selected reliever is unavailable in the requested date range"]}
        )
