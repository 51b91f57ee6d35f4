"""Leave workflow router — policy lookup and simulation, eligibility
preflight, date computation, submission and edits, stage decisions,
lifecycle actions, balances and evidence handling.

The acting user comes from ``X-Actor-Id``; role checks happen in the
workflow service.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import MAX_LEAVE_DAYS
from leave_workflow.common.dates import utc_today
from leave_workflow.common.rate_limit import decision_limit, limiter
from leave_workflow.common.exceptions import ForbiddenException
from leave_workflow.core_hr.service import get_profile, resolve_profile_by_identifier
from leave_workflow.database import get_db
from leave_workflow.dependencies import get_actor_id
from leave_workflow.leave.balances import list_balances
from leave_workflow.leave.calendar import compute_leave_dates
from leave_workflow.leave.evidence import upload_evidence, verify_evidence
from leave_workflow.leave.policy import get_leave_policy
from leave_workflow.leave.schemas import (
    EarlyReturnRequest,
    EligibilityCheckRequest,
    EmployeeBrief,
    EvidenceUploadRequest,
    EvidenceVerifyRequest,
    LeaveBalanceOut,
    LeaveCancelRequest,
    LeaveDates,
    LeaveDatesRequest,
    LeaveDecisionRequest,
    LeaveEvidenceOut,
    LeaveExtensionRequest,
    LeavePolicyRecord,
    LeavePreflight,
    LeaveRequestDetailOut,
    LeaveRequestOut,
    LeaveSubmitRequest,
    PolicySimulationOut,
    RequesterProfile,
)
from leave_workflow.leave.workflow import LeaveWorkflowService

router = APIRouter(prefix="", tags=["leave"])


# ── GET /policies/{leave_type_id} ───────────────────────────────────

@router.get("/policies/{leave_type_id}", response_model=LeavePolicyRecord)
async def get_policy(
    leave_type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Effective policy for a leave type (falls back to the leave-type default)."""
    return await get_leave_policy(db, leave_type_id)


# ── POST /eligibility ───────────────────────────────────────────────

@router.post("/eligibility", response_model=LeavePreflight)
async def check_eligibility(
    body: EligibilityCheckRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Run the full preflight for the acting user without creating a request."""
    profile = await get_profile(db, actor_id)
    return await LeaveWorkflowService.preflight(
        db,
        requester=RequesterProfile.model_validate(profile),
        leave_type_id=body.leave_type_id,
        start_date=body.start_date,
        days_count=body.days_count,
        reliever_id=body.reliever_id,
        location=profile.location,
        exclude_request_id=body.exclude_request_id,
    )


# ── POST /dates ─────────────────────────────────────────────────────

@router.post("/dates", response_model=LeaveDates)
async def leave_dates(
    body: LeaveDatesRequest,
    db: AsyncSession = Depends(get_db),
):
    """End and resume date for a leave of ``days_count`` days."""
    return await compute_leave_dates(
        db,
        start_date=body.start_date,
        days_count=body.days_count,
        accrual_mode=body.accrual_mode,
        location=body.location,
    )


# ── POST /requests ──────────────────────────────────────────────────

@router.post(
    "/requests",
    response_model=LeaveRequestOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_request(
    body: LeaveSubmitRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request for the acting user."""
    profile = await get_profile(db, actor_id)
    reliever_id = None
    if body.reliever:
        reliever = await resolve_profile_by_identifier(db, body.reliever, "Reliever")
        reliever_id = reliever.id
    return await LeaveWorkflowService.submit(
        db,
        requester=RequesterProfile.model_validate(profile),
        leave_type_id=body.leave_type_id,
        start_date=body.start_date,
        days_count=body.days_count,
        reason=body.reason,
        reliever_id=reliever_id,
        location=profile.location,
    )


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestDetailOut)
async def get_request(
    request_id: uuid.UUID,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """A leave request with its approval trail and evidence."""
    return await LeaveWorkflowService.get_request(
        db, request_id=request_id, actor_id=actor_id,
    )


# ── PUT /requests/{id} ──────────────────────────────────────────────

@router.put("/requests/{request_id}", response_model=LeaveRequestOut)
async def edit_request(
    request_id: uuid.UUID,
    body: LeaveSubmitRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Change the acting user's own pending request."""
    profile = await get_profile(db, actor_id)
    reliever_id = None
    if body.reliever:
        reliever = await resolve_profile_by_identifier(db, body.reliever, "Reliever")
        reliever_id = reliever.id
    return await LeaveWorkflowService.edit(
        db,
        request_id=request_id,
        requester=RequesterProfile.model_validate(profile),
        leave_type_id=body.leave_type_id,
        start_date=body.start_date,
        days_count=body.days_count,
        reason=body.reason,
        reliever_id=reliever_id,
        location=profile.location,
    )


# ── POST /requests/{id}/decision ────────────────────────────────────

@router.post("/requests/{request_id}/decision", response_model=LeaveRequestOut)
@limiter.limit(decision_limit)
async def decide_request(
    request: Request,
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject the request at its current approval stage."""
    return await LeaveWorkflowService.decide(
        db,
        request_id=request_id,
        approver_id=actor_id,
        action=body.action,
        comments=body.comments,
    )


# ── POST /requests/{id}/cancel ──────────────────────────────────────

@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_request(
    request_id: uuid.UUID,
    body: LeaveCancelRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a pending request or cancel approved leave."""
    return await LeaveWorkflowService.cancel(
        db, request_id=request_id, actor_id=actor_id, reason=body.reason,
    )


# ── POST /requests/{id}/early-return ────────────────────────────────

@router.post("/requests/{request_id}/early-return", response_model=LeaveRequestOut)
async def early_return(
    request_id: uuid.UUID,
    body: EarlyReturnRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """HR: shorten approved leave to end on ``return_date``."""
    return await LeaveWorkflowService.early_return(
        db,
        request_id=request_id,
        actor_id=actor_id,
        return_date=body.return_date,
        reason=body.reason,
    )


# ── POST /requests/{id}/extend ──────────────────────────────────────

@router.post(
    "/requests/{request_id}/extend",
    response_model=LeaveRequestOut,
    status_code=status.HTTP_201_CREATED,
)
async def extend_request(
    request_id: uuid.UUID,
    body: LeaveExtensionRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Request more days straight after the acting user's approved leave."""
    return await LeaveWorkflowService.extend(
        db,
        request_id=request_id,
        actor_id=actor_id,
        extension_days=body.extension_days,
        reason=body.reason,
    )


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=list[LeaveBalanceOut])
async def get_balances(
    user_id: Optional[uuid.UUID] = None,
    year: Optional[int] = None,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Leave balances of the acting user, or of ``user_id`` for HR."""
    target = user_id or actor_id
    if target != actor_id and not await LeaveWorkflowService.is_hr(db, actor_id):
        raise ForbiddenException("Only HR can view other employees' balances")
    return await list_balances(db, target, year)


# ── GET /policy-simulation ──────────────────────────────────────────

@router.get("/policy-simulation", response_model=PolicySimulationOut)
async def simulate_policies(
    days: int = Query(1, gt=0, le=MAX_LEAVE_DAYS),
    start_date: Optional[date] = None,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """How every leave type's policy treats the acting user for a sample request."""
    profile = await get_profile(db, actor_id)
    items = await LeaveWorkflowService.simulate_policies(
        db,
        requester=RequesterProfile.model_validate(profile),
        start_date=start_date or utc_today(),
        days_count=days,
    )
    return PolicySimulationOut(employee=EmployeeBrief.model_validate(profile), data=items)


# ── POST /requests/{id}/evidence ────────────────────────────────────

@router.post(
    "/requests/{request_id}/evidence",
    response_model=LeaveEvidenceOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_request_evidence(
    request_id: uuid.UUID,
    body: EvidenceUploadRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Attach a supporting document to the acting user's own request."""
    return await upload_evidence(
        db,
        request_id,
        document_type=body.document_type,
        file_url=body.file_url,
        uploader_id=actor_id,
        notes=body.notes,
    )


# ── POST /evidence/{id}/verify ──────────────────────────────────────

@router.post("/evidence/{evidence_id}/verify", response_model=LeaveEvidenceOut)
async def verify_evidence_upload(
    evidence_id: uuid.UUID,
    body: EvidenceVerifyRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """HR: mark an evidence upload verified or rejected."""
    if not await LeaveWorkflowService.is_hr(db, actor_id):
        raise ForbiddenException("Only HR can verify leave evidence")
    return await verify_evidence(
        db, evidence_id, body.status, actor_id, notes=body.notes,
    )
