"""Leave balances — yearly allowance, deduction on approval, restoration.

A balance row is keyed by (user, leave type, calendar year of the leave
start). Rows are created lazily with the policy's ``annual_days`` as the
allocation the first time leave of that type is approved.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.exceptions import StoreException, ValidationException
from leave_workflow.leave.models import LeaveBalance
from leave_workflow.leave.policy import get_leave_policy

logger = logging.getLogger(__name__)


async def get_balance(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> Optional[LeaveBalance]:
    try:
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.leave_type_id == leave_type_id,
                LeaveBalance.year == year,
            )
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load leave balance") from exc
    return result.scalars().first()


async def get_or_create_balance(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> LeaveBalance:
    balance = await get_balance(db, user_id, leave_type_id, year)
    if balance is not None:
        return balance

    policy = await get_leave_policy(db, leave_type_id)
    balance = LeaveBalance(
        user_id=user_id,
        leave_type_id=leave_type_id,
        year=year,
        allocated_days=policy.annual_days,
        used_days=0,
    )
    try:
        db.add(balance)
        await db.flush()
    except SQLAlchemyError as exc:
        raise StoreException("Failed to create leave balance") from exc
    return balance


async def list_balances(
    db: AsyncSession,
    user_id: uuid.UUID,
    year: Optional[int] = None,
) -> list[LeaveBalance]:
    query = select(LeaveBalance).where(LeaveBalance.user_id == user_id)
    if year is not None:
        query = query.where(LeaveBalance.year == year)
    try:
        result = await db.execute(
            query.order_by(LeaveBalance.year.desc(), LeaveBalance.leave_type_id)
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load leave balances") from exc
    return list(result.scalars().all())


async def assert_sufficient_balance(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days_count: int,
) -> None:
    """Reject ``days_count`` above what is left for the year.

    Users without a balance row for the year are not checked.
    """
    balance = await get_balance(db, user_id, leave_type_id, year)
    if balance is None:
        return
    if days_count > balance.balance_days:
        remaining = max(balance.balance_days, 0)
        raise ValidationException(
            {"days_count": [
                f"Insufficient leave balance. You have {remaining} days remaining."
            ]}
        )


async def deduct_leave_balance(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: int,
) -> LeaveBalance:
    balance = await get_or_create_balance(db, user_id, leave_type_id, year)
    balance.used_days += days
    balance.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info(
        "Deducted %d day(s) from %s balance of %s for %d (used %d of %d)",
        days, leave_type_id, user_id, year, balance.used_days, balance.allocated_days,
    )
    return balance


async def restore_leave_balance(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: int,
) -> Optional[LeaveBalance]:
    """Give ``days`` back; ``used_days`` is floored at zero. No-op without a row."""
    if days <= 0:
        return None
    balance = await get_balance(db, user_id, leave_type_id, year)
    if balance is None:
        logger.warning(
            "No %d balance for %s / %s; %d day(s) not restored",
            year, user_id, leave_type_id, days,
        )
        return None
    balance.used_days = max(0, balance.used_days - days)
    balance.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return balance
