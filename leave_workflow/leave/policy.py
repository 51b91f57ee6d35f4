"""Policy loader — resolves the effective policy for a leave type.

Resolution order:
  1. Active ``leave_policies`` row (governance schema, else legacy schema)
  2. Permissive default derived from ``leave_types.max_days``
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import AccrualMode, LeaveEligibility
from leave_workflow.common.exceptions import NotFoundException, StoreException
from leave_workflow.leave.models import LeavePolicy, LeaveType
from leave_workflow.leave.schemas import LeavePolicyRecord

logger = logging.getLogger(__name__)

GOVERNANCE_COLUMNS = (
    "eligibility_conditions",
    "required_documents",
    "frequency_rules",
    "override_allowed",
)

_LEGACY_COLUMNS = (
    LeavePolicy.leave_type_id,
    LeavePolicy.annual_days,
    LeavePolicy.eligibility,
    LeavePolicy.min_tenure_months,
    LeavePolicy.notice_days,
    LeavePolicy.accrual_mode,
    LeavePolicy.is_active,
)

_GOVERNANCE_SELECT = _LEGACY_COLUMNS + (
    LeavePolicy.eligibility_conditions,
    LeavePolicy.required_documents,
    LeavePolicy.frequency_rules,
    LeavePolicy.override_allowed,
)


def is_missing_governance_column(exc: BaseException) -> bool:
    """True when the database rejected the query because a governance
    column has not been migrated yet."""
    message = str(getattr(exc, "orig", None) or exc)
    return any(column in message for column in GOVERNANCE_COLUMNS)


def default_policy(leave_type_id: uuid.UUID, max_days: int) -> LeavePolicyRecord:
    return LeavePolicyRecord(
        leave_type_id=leave_type_id,
        annual_days=max_days or 0,
        eligibility=LeaveEligibility.all,
        min_tenure_months=0,
        notice_days=0,
        accrual_mode=AccrualMode.calendar_days,
        is_active=True,
    )


async def _fetch_policy_row(db: AsyncSession, leave_type_id: uuid.UUID, columns) -> dict | None:
    result = await db.execute(
        select(*columns).where(LeavePolicy.leave_type_id == leave_type_id)
    )
    row = result.mappings().first()
    return dict(row) if row is not None else None


async def get_leave_policy(db: AsyncSession, leave_type_id: uuid.UUID) -> LeavePolicyRecord:
    """Return the effective policy for ``leave_type_id``.

    Raises:
        StoreException: the policy or leave type query failed.
        NotFoundException: neither a policy nor the leave type exists.
    """
    row: dict | None = None
    try:
        # SAVEPOINT keeps the outer transaction usable if the column is missing
        async with db.begin_nested():
            row = await _fetch_policy_row(db, leave_type_id, _GOVERNANCE_SELECT)
    except DBAPIError as exc:
        if not is_missing_governance_column(exc):
            logger.error("Leave policy query failed for %s: %s", leave_type_id, exc)
            raise StoreException("Failed to load leave policy") from exc

        logger.warning(
            "leave_policies governance columns missing; using legacy schema for %s",
            leave_type_id,
        )
        try:
            row = await _fetch_policy_row(db, leave_type_id, _LEGACY_COLUMNS)
        except SQLAlchemyError as legacy_exc:
            raise StoreException("Failed to load leave policy") from legacy_exc
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load leave policy") from exc

    if row is not None and row.get("is_active"):
        return LeavePolicyRecord.model_validate(row)

    try:
        result = await db.execute(
            select(LeaveType.max_days).where(LeaveType.id == leave_type_id)
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load leave type") from exc

    max_days = result.first()
    if max_days is None:
        raise NotFoundException("LeaveType", leave_type_id, detail="Leave type not found")

    return default_policy(leave_type_id, max_days[0])
