"""Date range computer — end and resume dates for a leave of N days."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.attendance.service import get_holiday_set
from leave_workflow.common.constants import MAX_LEAVE_DAYS, AccrualMode
from leave_workflow.common.dates import add_days, is_business_day, iter_days, parse_iso_date
from leave_workflow.common.exceptions import ValidationException
from leave_workflow.config import settings
from leave_workflow.leave.schemas import LeaveDates

logger = logging.getLogger(__name__)


def validate_days_count(days_count: int) -> None:
    if days_count <= 0:
        raise ValidationException(
            {"days_count": ["Number of days must be greater than zero"]}
        )
    if days_count > MAX_LEAVE_DAYS:
        raise ValidationException(
            {"days_count": [f"Number of days cannot exceed {MAX_LEAVE_DAYS}"]}
        )


class _HolidayWindow:
    """Holiday set fetched lazily in fixed-size windows ahead of the walk."""

    def __init__(self, db: AsyncSession, location: str, start: date, span_days: int) -> None:
        self._db = db
        self._location = location
        self._span_days = span_days
        self._next_from = start
        self.fetched_until: Optional[date] = None
        self.holidays: set[str] = set()

    async def extend(self) -> None:
        window_end = add_days(self._next_from, self._span_days)
        self.holidays |= await get_holiday_set(
            self._db, self._location, self._next_from, window_end,
        )
        self.fetched_until = window_end
        self._next_from = add_days(window_end, 1)

    async def is_business_day(self, day: date) -> bool:
        if self.fetched_until is None:
            await self.extend()
        while day > self.fetched_until:
            logger.warning(
                "Business-day walk passed %s for location %s; fetching next holiday window",
                self.fetched_until, self._location,
            )
            await self.extend()
        return is_business_day(day, self.holidays)


async def compute_leave_dates(
    db: AsyncSession,
    *,
    start_date: date | str,
    days_count: int,
    accrual_mode: AccrualMode | str,
    location: Optional[str] = None,
) -> LeaveDates:
    """Compute the last leave day and the return-to-work day.

    ``calendar_days`` counts every day. ``business_days`` counts only
    weekdays that are not holidays at ``location``; the resume date is then
    the next business day after the end date.
    """
    start = parse_iso_date(start_date)
    validate_days_count(days_count)

    try:
        accrual_mode = AccrualMode(accrual_mode)
    except ValueError:
        raise ValidationException(
            {"accrual_mode": ["Accrual mode must be 'calendar_days' or 'business_days'."]}
        ) from None

    if accrual_mode == AccrualMode.calendar_days:
        end = add_days(start, days_count - 1)
        return LeaveDates(end_date=end, resume_date=add_days(end, 1))

    window = _HolidayWindow(
        db,
        location or settings.HOLIDAY_DEFAULT_LOCATION,
        start,
        max(settings.HOLIDAY_SEARCH_MIN_DAYS, days_count * 4),
    )

    current = start
    counted = 0
    while True:
        if await window.is_business_day(current):
            counted += 1
            if counted == days_count:
                break
        current = add_days(current, 1)

    end = current
    resume = add_days(end, 1)
    while not await window.is_business_day(resume):
        resume = add_days(resume, 1)

    return LeaveDates(end_date=end, resume_date=resume)


async def count_leave_days(
    db: AsyncSession,
    *,
    start_date: date | str,
    end_date: date | str,
    accrual_mode: AccrualMode | str,
    location: Optional[str] = None,
) -> int:
    """Days of ``[start, end]`` that count against leave under ``accrual_mode``."""
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    if end < start:
        return 0
    if AccrualMode(accrual_mode) == AccrualMode.calendar_days:
        return (end - start).days + 1

    holidays = await get_holiday_set(
        db, location or settings.HOLIDAY_DEFAULT_LOCATION, start, end,
    )
    return sum(1 for day in iter_days(start, end) if is_business_day(day, holidays))
