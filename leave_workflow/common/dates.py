"""Date and calendar helpers shared by the leave workflow.

All dates are calendar dates (``datetime.date``) interpreted at UTC; ISO
strings are ``YYYY-MM-DD``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import AbstractSet, Iterator, Union

from leave_workflow.common.constants import DATE_FORMAT
from leave_workflow.common.exceptions import ValidationException

UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

ISO_DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, str]


def is_valid_uuid(value: str) -> bool:
    return bool(UUID_REGEX.match(value))


def parse_iso_date(value: DateLike) -> date:
    """Parse a ``YYYY-MM-DD`` string. ``date`` instances pass through."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not ISO_DATE_REGEX.match(text):
        raise ValidationException({"date": ["Invalid date format"]})
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        raise ValidationException({"date": ["Invalid date format"]}) from None


def to_iso_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def add_days(value: date, days: int) -> date:
    try:
        return value + timedelta(days=days)
    except OverflowError:
        raise ValidationException({"date": ["Date is out of range"]}) from None


def diff_months(from_date: date, to_date: date) -> int:
    """Calendar-month difference; the day of month is ignored."""
    return (to_date.year - from_date.year) * 12 + (to_date.month - from_date.month)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_weekend(value: date) -> bool:
    # 5 = Saturday, 6 = Sunday
    return value.weekday() >= 5


def is_business_day(value: date, holiday_set: AbstractSet[str]) -> bool:
    if is_weekend(value):
        return False
    return to_iso_date(value) not in holiday_set


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in ``[start, end]``."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
