"""Evidence verification — required documents vs. verified uploads."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import EvidenceStatus, LeaveStatus
from leave_workflow.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    StoreException,
    ValidationException,
)
from leave_workflow.leave.models import LeaveEvidence, LeaveRequest
from leave_workflow.leave.policy import get_leave_policy
from leave_workflow.leave.schemas import EvidenceCheck
from leave_workflow.notifications.mailer import LeaveMailer
from leave_workflow.notifications.service import notify_users

logger = logging.getLogger(__name__)


async def are_required_documents_verified(
    db: AsyncSession,
    leave_request_id: uuid.UUID,
    required_documents: list[str],
) -> EvidenceCheck:
    if not required_documents:
        return EvidenceCheck(complete=True, missing=[])

    try:
        result = await db.execute(
            select(LeaveEvidence.document_type).where(
                LeaveEvidence.leave_request_id == leave_request_id,
                LeaveEvidence.status == EvidenceStatus.verified.value,
            )
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load leave evidence") from exc

    verified = set(result.scalars().all())
    missing = [doc for doc in required_documents if doc not in verified]
    return EvidenceCheck(complete=not missing, missing=missing)


async def _release_if_complete(
    db: AsyncSession,
    leave_request: LeaveRequest,
    *,
    actor_id: uuid.UUID,
    message: str,
    mailer: Optional[LeaveMailer],
) -> bool:
    """Move a ``pending_evidence`` request into the approval chain once every
    policy-required document is verified."""
    if leave_request.status != LeaveStatus.pending_evidence.value:
        return False

    policy = await get_leave_policy(db, leave_request.leave_type_id)
    check = await are_required_documents_verified(
        db, leave_request.id, policy.required_documents,
    )
    if not check.complete:
        return False

    leave_request.status = LeaveStatus.pending.value
    leave_request.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Leave request %s released from evidence hold", leave_request.id)

    await notify_users(
        db,
        user_ids=[leave_request.reliever_id, leave_request.supervisor_id],
        title="Leave request ready for approval",
        message=message,
        actor_id=actor_id,
        entity_id=leave_request.id,
        mailer=mailer,
    )
    return True


async def upload_evidence(
    db: AsyncSession,
    leave_request_id: uuid.UUID,
    *,
    document_type: str,
    file_url: str,
    uploader_id: uuid.UUID,
    notes: Optional[str] = None,
    mailer: Optional[LeaveMailer] = None,
) -> LeaveEvidence:
    """Attach a document to the uploader's own leave request. New uploads
    start ``pending`` until HR verifies them."""
    document_type = (document_type or "").strip()
    file_url = (file_url or "").strip()
    if not document_type or not file_url:
        raise ValidationException(
            {"document_type": ["document_type and file_url are required"]}
        )

    leave_request = await db.get(LeaveRequest, leave_request_id)
    if leave_request is None:
        raise NotFoundException(
            "LeaveRequest", leave_request_id, detail="Leave request not found",
        )
    if leave_request.user_id != uploader_id:
        raise ForbiddenException("You can only upload evidence for your own request")

    evidence = LeaveEvidence(
        leave_request_id=leave_request.id,
        document_type=document_type,
        file_url=file_url,
        uploaded_by=uploader_id,
        notes=notes or None,
        status=EvidenceStatus.pending.value,
    )
    try:
        db.add(evidence)
        await db.flush()
    except SQLAlchemyError as exc:
        raise StoreException("Failed to upload evidence") from exc

    await _release_if_complete(
        db,
        leave_request,
        actor_id=uploader_id,
        message=(
            "Required evidence has been completed. The leave request has "
            "entered approval workflow."
        ),
        mailer=mailer,
    )
    return evidence


async def verify_evidence(
    db: AsyncSession,
    evidence_id: uuid.UUID,
    status: EvidenceStatus | str,
    verifier_id: uuid.UUID,
    *,
    notes: Optional[str] = None,
    mailer: Optional[LeaveMailer] = None,
) -> LeaveEvidence:
    """Mark an evidence upload verified or rejected.

    Once every document the policy requires is verified, a request waiting
    on evidence is released into the approval chain and its reliever and
    supervisor are notified. A rejection never releases a request.
    """
    try:
        status = EvidenceStatus(status)
    except ValueError:
        status = EvidenceStatus.pending
    if status == EvidenceStatus.pending:
        raise ValidationException({"status": ["status must be 'verified' or 'rejected'"]})

    evidence = await db.get(LeaveEvidence, evidence_id)
    if evidence is None:
        raise NotFoundException("LeaveEvidence", evidence_id)

    evidence.status = status.value
    evidence.notes = notes or None
    evidence.verified_by = verifier_id
    evidence.verified_at = datetime.now(timezone.utc)
    await db.flush()

    if status != EvidenceStatus.verified:
        return evidence

    leave_request = await db.get(LeaveRequest, evidence.leave_request_id)
    if leave_request is not None:
        await _release_if_complete(
            db,
            leave_request,
            actor_id=verifier_id,
            message=(
                "Evidence has been verified and the leave request is now ready "
                "for workflow approvals."
            ),
            mailer=mailer,
        )
    return evidence
