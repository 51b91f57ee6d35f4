"""Attendance service — holiday calendar lookups and leave-driven attendance sync."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.attendance.models import AttendanceRecord, HolidayCalendarEntry
from leave_workflow.common.constants import (
    LEAVE_ATTENDANCE_NOTE,
    AttendanceStatus,
    AttendanceSyncMode,
)
from leave_workflow.common.dates import iter_days, parse_iso_date, to_iso_date
from leave_workflow.common.exceptions import StoreException, ValidationException

logger = logging.getLogger(__name__)


def _dialect_insert(db: AsyncSession):
    """``INSERT .. ON CONFLICT`` construct for the session's backend."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


async def get_holiday_set(
    db: AsyncSession,
    location: str,
    start_date: date | str,
    end_date: date | str,
) -> set[str]:
    """ISO dates of non-working holidays for ``location`` in ``[start, end]``.

    Entries flagged ``is_business_day`` stay working days and are left out.
    """
    try:
        result = await db.execute(
            select(HolidayCalendarEntry.holiday_date, HolidayCalendarEntry.is_business_day)
            .where(
                HolidayCalendarEntry.location == location,
                HolidayCalendarEntry.holiday_date >= parse_iso_date(start_date),
                HolidayCalendarEntry.holiday_date <= parse_iso_date(end_date),
            )
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to fetch holiday calendar") from exc

    return {
        to_iso_date(holiday_date)
        for holiday_date, is_business_day in result.all()
        if not is_business_day
    }


async def sync_attendance_for_approved_leave(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_date: date | str,
    end_date: date | str,
    mode: AttendanceSyncMode | str,
) -> int:
    """Materialize (``set``) or remove (``clear``) ``on_leave`` attendance rows
    for every calendar day of a leave span.

    ``set`` overwrites whatever attendance already exists for those days.
    ``clear`` only deletes rows still marked ``on_leave``.

    Returns:
        Number of rows written or deleted.
    """
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    try:
        mode = AttendanceSyncMode(mode)
    except ValueError:
        raise ValidationException({"mode": ["Mode must be 'set' or 'clear'."]}) from None

    if mode == AttendanceSyncMode.clear:
        try:
            result = await db.execute(
                delete(AttendanceRecord).where(
                    AttendanceRecord.user_id == user_id,
                    AttendanceRecord.status == AttendanceStatus.on_leave.value,
                    AttendanceRecord.date >= start,
                    AttendanceRecord.date <= end,
                )
            )
            await db.flush()
        except SQLAlchemyError as exc:
            raise StoreException("Failed to clear leave attendance") from exc
        return result.rowcount or 0

    days = list(iter_days(start, end))
    if not days:
        return 0

    now = datetime.now(timezone.utc)
    rows = [
        {
            "id": uuid.uuid4(),
            "user_id": user_id,
            "date": day,
            "status": AttendanceStatus.on_leave.value,
            "notes": LEAVE_ATTENDANCE_NOTE,
            "updated_at": now,
        }
        for day in days
    ]
    upsert = _dialect_insert(db)(AttendanceRecord).values(rows)
    upsert = upsert.on_conflict_do_update(
        index_elements=[AttendanceRecord.user_id, AttendanceRecord.date],
        set_={
            "status": upsert.excluded.status,
            "notes": upsert.excluded.notes,
            "updated_at": upsert.excluded.updated_at,
        },
    )
    try:
        overwritten = await db.scalar(
            select(func.count(AttendanceRecord.id)).where(
                AttendanceRecord.user_id == user_id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
                AttendanceRecord.status != AttendanceStatus.on_leave.value,
            )
        )
        # refresh any copies of these rows already loaded in the session
        written = await db.scalars(
            upsert.returning(AttendanceRecord),
            execution_options={"populate_existing": True},
        )
        written_count = len(written.all())
    except SQLAlchemyError as exc:
        raise StoreException("Failed to sync leave attendance") from exc

    if overwritten:
        logger.info(
            "Leave attendance for %s overwrote %d existing record(s) between %s and %s",
            user_id, overwritten, start, end,
        )
    return written_count
