"""Approval recorder — append-only audit trail of stage decisions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import ApprovalAction, ApprovalStage
from leave_workflow.common.exceptions import StoreException, ValidationException
from leave_workflow.leave.models import LeaveApproval


def _coerce_stage(stage: ApprovalStage | str) -> ApprovalStage:
    try:
        return ApprovalStage(stage)
    except ValueError:
        raise ValidationException(
            {"stage": [f"Unknown approval stage '{stage}'."]}
        ) from None


async def create_approval_record(
    db: AsyncSession,
    *,
    leave_request_id: uuid.UUID,
    approver_id: uuid.UUID,
    stage: ApprovalStage | str,
    action: ApprovalAction | str,
    comments: Optional[str] = None,
) -> LeaveApproval:
    """Insert one immutable approval row for ``stage``.

    The approval level comes from the stage (reliever 1, supervisor 2, HR 3).
    """
    stage = _coerce_stage(stage)
    try:
        action = ApprovalAction(action)
    except ValueError:
        raise ValidationException(
            {"action": ['Invalid status. Must be "approved" or "rejected"']}
        ) from None

    approval = LeaveApproval(
        leave_request_id=leave_request_id,
        approver_id=approver_id,
        approval_level=stage.level,
        status=action.value,
        comments=comments or None,
        approved_at=datetime.now(timezone.utc),
    )
    try:
        db.add(approval)
        await db.flush()
    except SQLAlchemyError as exc:
        raise StoreException("Failed to record leave approval") from exc
    return approval
