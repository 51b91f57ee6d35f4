"""Leave workflow service — preflight, submission, stage decisions, lifecycle.

State machine (``status`` / ``approval_stage``):

    pending_evidence ──evidence verified──► pending
    pending @ reliever_pending ─► supervisor_pending ─► hr_pending ─► approved @ completed
    any pending stage ──rejected──► rejected @ rejected
    pending / pending_evidence ──withdraw──► cancelled
    approved ──cancel──► cancelled (attendance cleared, balance restored)
    approved ──extend──► new pending request @ reliever_pending (request_kind extension)

The used balance is charged on final approval, against the year the leave
starts in.

Stages without an assigned owner (no reliever, no supervisor) are skipped.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leave_workflow.attendance.service import sync_attendance_for_approved_leave
from leave_workflow.common.constants import (
    AccrualMode,
    ApprovalAction,
    ApprovalStage,
    AttendanceSyncMode,
    ClosedStage,
    EligibilityStatus,
    LeaveStatus,
    RequestKind,
)
from leave_workflow.common.dates import add_days, parse_iso_date, utc_today
from leave_workflow.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    StoreException,
    ValidationException,
)
from leave_workflow.config import settings
from leave_workflow.core_hr.models import Profile
from leave_workflow.core_hr.service import get_hr_profile_ids, get_supervisor_for_user
from leave_workflow.leave.approvals import create_approval_record
from leave_workflow.leave.balances import (
    assert_sufficient_balance,
    deduct_leave_balance,
    restore_leave_balance,
)
from leave_workflow.leave.calendar import (
    compute_leave_dates,
    count_leave_days,
    validate_days_count,
)
from leave_workflow.leave.conflicts import assert_no_overlap, assert_reliever_availability
from leave_workflow.leave.eligibility import evaluate_leave_eligibility
from leave_workflow.leave.models import LeaveRequest, LeaveType
from leave_workflow.leave.policy import get_leave_policy
from leave_workflow.leave.schemas import (
    LeavePreflight,
    LeaveTypeBrief,
    PolicySimulationItem,
    RequesterProfile,
)
from leave_workflow.notifications.mailer import LeaveMailer
from leave_workflow.notifications.service import notify_users

logger = logging.getLogger(__name__)


class LeaveWorkflowService:
    """Async leave workflow operations over a caller-supplied session."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _load_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        try:
            leave_request = await db.get(LeaveRequest, request_id)
        except SQLAlchemyError as exc:
            raise StoreException("Failed to load leave request") from exc
        if leave_request is None:
            raise NotFoundException("LeaveRequest", request_id, detail="Leave request not found")
        return leave_request

    @staticmethod
    async def is_hr(db: AsyncSession, actor_id: uuid.UUID) -> bool:
        result = await db.execute(select(Profile.role).where(Profile.id == actor_id))
        return result.scalar_one_or_none() in settings.hr_roles_list

    @staticmethod
    def _stage_owner(leave_request: LeaveRequest, stage: ApprovalStage) -> Optional[uuid.UUID]:
        if stage == ApprovalStage.reliever_pending:
            return leave_request.reliever_id
        if stage == ApprovalStage.supervisor_pending:
            return leave_request.supervisor_id
        return None

    @staticmethod
    def _first_open_stage(
        leave_request: LeaveRequest,
        stage: Optional[ApprovalStage],
    ) -> Optional[ApprovalStage]:
        """``stage`` or the next one after it that has someone to act on it."""
        while stage is not None:
            if stage == ApprovalStage.hr_pending:
                return stage
            if LeaveWorkflowService._stage_owner(leave_request, stage) is not None:
                return stage
            stage = stage.next_stage
        return None

    @staticmethod
    async def _stage_recipients(
        db: AsyncSession,
        leave_request: LeaveRequest,
        stage: ApprovalStage,
    ) -> list[uuid.UUID]:
        if stage == ApprovalStage.hr_pending:
            return await get_hr_profile_ids(db)
        owner = LeaveWorkflowService._stage_owner(leave_request, stage)
        return [owner] if owner else []

    @staticmethod
    async def _leave_type_brief(db: AsyncSession, leave_type_id: uuid.UUID) -> LeaveTypeBrief:
        leave_type = await db.get(LeaveType, leave_type_id)
        if leave_type is None:
            return LeaveTypeBrief(id=leave_type_id)
        return LeaveTypeBrief.model_validate(leave_type)

    @staticmethod
    def _span(leave_request: LeaveRequest) -> str:
        return (
            f"{leave_request.days_count} day(s) from {leave_request.start_date.isoformat()} "
            f"to {leave_request.end_date.isoformat()}"
        )

    # ─────────────────────────────────────────────────────────────────
    # Preflight / submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def preflight(
        db: AsyncSession,
        *,
        requester: RequesterProfile,
        leave_type_id: uuid.UUID,
        start_date: date | str,
        days_count: int,
        reliever_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None,
        exclude_request_id: Optional[uuid.UUID] = None,
        today: Optional[date] = None,
    ) -> LeavePreflight:
        """Run every check a new (or edited) request must pass.

        Raises ``ValidationException`` when the requester is not eligible, the
        dates overlap an active request, or the reliever is away.
        """
        start = parse_iso_date(start_date)
        validate_days_count(days_count)

        policy = await get_leave_policy(db, leave_type_id)
        leave_type = await LeaveWorkflowService._leave_type_brief(db, leave_type_id)

        eligibility = await evaluate_leave_eligibility(
            db,
            policy=policy,
            requester_profile=requester,
            leave_type=leave_type,
            start_date=start,
            days_count=days_count,
            today=today,
        )
        if eligibility.status == EligibilityStatus.not_eligible:
            raise ValidationException({"leave_type_id": [eligibility.reason]})

        dates = await compute_leave_dates(
            db,
            start_date=start,
            days_count=days_count,
            accrual_mode=policy.accrual_mode,
            location=location,
        )

        await assert_sufficient_balance(
            db, requester.id, leave_type_id, start.year, days_count,
        )
        await assert_no_overlap(db, requester.id, start, dates.end_date, exclude_request_id)
        if reliever_id is not None:
            await assert_reliever_availability(
                db, reliever_id, start, dates.end_date, exclude_request_id,
            )

        initial_status = (
            LeaveStatus.pending_evidence
            if eligibility.status == EligibilityStatus.missing_evidence
            else LeaveStatus.pending
        )
        return LeavePreflight(
            policy=policy,
            eligibility=eligibility,
            dates=dates,
            initial_status=initial_status,
        )

    @staticmethod
    async def submit(
        db: AsyncSession,
        *,
        requester: RequesterProfile,
        leave_type_id: uuid.UUID,
        start_date: date | str,
        days_count: int,
        reason: Optional[str] = None,
        reliever_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None,
        mailer: Optional[LeaveMailer] = None,
        today: Optional[date] = None,
    ) -> LeaveRequest:
        """Preflight, then create the request in the same transaction and
        notify the first approver (unless evidence is still missing)."""
        check = await LeaveWorkflowService.preflight(
            db,
            requester=requester,
            leave_type_id=leave_type_id,
            start_date=start_date,
            days_count=days_count,
            reliever_id=reliever_id,
            location=location,
            today=today,
        )
        supervisor = await get_supervisor_for_user(db, requester.id)

        leave_request = LeaveRequest(
            user_id=requester.id,
            leave_type_id=leave_type_id,
            start_date=parse_iso_date(start_date),
            end_date=check.dates.end_date,
            resume_date=check.dates.resume_date,
            days_count=days_count,
            reason=reason,
            status=check.initial_status.value,
            reliever_id=reliever_id,
            supervisor_id=supervisor.id,
            requested_days_mode=check.policy.accrual_mode.value,
            request_kind=RequestKind.standard.value,
        )
        first_stage = LeaveWorkflowService._first_open_stage(
            leave_request, ApprovalStage.reliever_pending,
        )
        leave_request.approval_stage = first_stage.value

        try:
            db.add(leave_request)
            await db.flush()
        except SQLAlchemyError as exc:
            raise StoreException("Failed to create leave request") from exc

        if check.initial_status == LeaveStatus.pending:
            await notify_users(
                db,
                user_ids=await LeaveWorkflowService._stage_recipients(db, leave_request, first_stage),
                title="Leave request awaiting your approval",
                message=f"A leave request for {LeaveWorkflowService._span(leave_request)} needs your review.",
                actor_id=requester.id,
                entity_id=leave_request.id,
                mailer=mailer,
            )
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Decide
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        approver_id: uuid.UUID,
        action: ApprovalAction | str,
        comments: Optional[str] = None,
        mailer: Optional[LeaveMailer] = None,
    ) -> LeaveRequest:
        """Approve or reject the request at its current stage."""
        try:
            action = ApprovalAction(action)
        except ValueError:
            raise ValidationException(
                {"action": ['Invalid status. Must be "approved" or "rejected"']}
            ) from None
        leave_request = await LeaveWorkflowService._load_request(db, request_id)

        if leave_request.status == LeaveStatus.pending_evidence.value:
            raise ValidationException(
                {"status": ["Leave request is waiting for evidence verification."]}
            )
        if leave_request.status != LeaveStatus.pending.value:
            raise ValidationException(
                {"status": [f"Leave request is already {leave_request.status}."]}
            )
        try:
            stage = ApprovalStage(leave_request.approval_stage)
        except ValueError:
            raise ValidationException(
                {"approval_stage": ["Leave request is not awaiting approval."]}
            ) from None

        owner = LeaveWorkflowService._stage_owner(leave_request, stage)
        if owner != approver_id and not await LeaveWorkflowService.is_hr(db, approver_id):
            raise ForbiddenException("You are not the approver for this stage.")

        await create_approval_record(
            db,
            leave_request_id=leave_request.id,
            approver_id=approver_id,
            stage=stage,
            action=action,
            comments=comments,
        )
        now = datetime.now(timezone.utc)
        leave_request.updated_at = now

        if action == ApprovalAction.rejected:
            leave_request.status = LeaveStatus.rejected.value
            leave_request.approval_stage = ClosedStage.rejected.value
            leave_request.rejected_reason = comments or None
            await db.flush()
            logger.info("Leave request %s rejected at %s", leave_request.id, stage.value)
            await notify_users(
                db,
                user_ids=[leave_request.user_id],
                title="Leave request rejected",
                message=(
                    f"Your leave request for {LeaveWorkflowService._span(leave_request)} "
                    f"was rejected. Reason: {comments or 'No reason provided'}"
                ),
                actor_id=approver_id,
                entity_id=leave_request.id,
                mailer=mailer,
            )
            return leave_request

        next_stage = LeaveWorkflowService._first_open_stage(leave_request, stage.next_stage)
        if next_stage is not None:
            leave_request.approval_stage = next_stage.value
            await db.flush()
            logger.info(
                "Leave request %s advanced %s -> %s",
                leave_request.id, stage.value, next_stage.value,
            )
            await notify_users(
                db,
                user_ids=await LeaveWorkflowService._stage_recipients(db, leave_request, next_stage),
                title="Leave request awaiting your approval",
                message=(
                    f"A leave request for {LeaveWorkflowService._span(leave_request)} "
                    "needs your review."
                ),
                actor_id=approver_id,
                entity_id=leave_request.id,
                mailer=mailer,
            )
            return leave_request

        leave_request.status = LeaveStatus.approved.value
        leave_request.approval_stage = ClosedStage.completed.value
        await db.flush()
        logger.info("Leave request %s approved", leave_request.id)

        await deduct_leave_balance(
            db,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.start_date.year,
            leave_request.days_count,
        )

        await sync_attendance_for_approved_leave(
            db,
            leave_request.user_id,
            leave_request.start_date,
            leave_request.end_date,
            AttendanceSyncMode.set,
        )
        await notify_users(
            db,
            user_ids=[leave_request.user_id],
            title="Leave request approved",
            message=f"Your leave request for {LeaveWorkflowService._span(leave_request)} has been approved.",
            actor_id=approver_id,
            entity_id=leave_request.id,
            mailer=mailer,
        )
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        reason: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LeaveRequest:
        """Withdraw a pending request or cancel an approved one.

        Pending requests can only be withdrawn by the requester. Approved
        leave can be cancelled by the requester before it starts, or by HR at
        any time; its attendance rows are cleared.
        """
        leave_request = await LeaveWorkflowService._load_request(db, request_id)
        is_owner = leave_request.user_id == actor_id
        now = datetime.now(timezone.utc)

        if leave_request.status in (LeaveStatus.pending.value, LeaveStatus.pending_evidence.value):
            if not is_owner:
                raise ForbiddenException("Only requester can withdraw leave")
            leave_request.status = LeaveStatus.cancelled.value
            leave_request.approval_stage = ClosedStage.cancelled.value
            leave_request.rejected_reason = reason or "Withdrawn by requester"
            leave_request.updated_at = now
            await db.flush()
            return leave_request

        if leave_request.status != LeaveStatus.approved.value:
            raise ValidationException(
                {"status": ["Only pending or approved leave can be cancelled"]}
            )

        is_hr = await LeaveWorkflowService.is_hr(db, actor_id)
        if not (is_owner or is_hr):
            raise ForbiddenException("Only requester or HR can cancel approved leave")
        if not is_hr and leave_request.start_date <= (today or utc_today()):
            raise ValidationException(
                {"status": ["You can only cancel leave before it starts"]}
            )

        leave_request.status = LeaveStatus.cancelled.value
        leave_request.approval_stage = ClosedStage.cancelled.value
        leave_request.rejected_reason = reason or "Cancelled"
        leave_request.updated_at = now
        await db.flush()

        await sync_attendance_for_approved_leave(
            db,
            leave_request.user_id,
            leave_request.start_date,
            leave_request.end_date,
            AttendanceSyncMode.clear,
        )
        await restore_leave_balance(
            db,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.start_date.year,
            leave_request.days_count,
        )
        logger.info("Approved leave request %s cancelled by %s", leave_request.id, actor_id)
        return leave_request

    @staticmethod
    async def early_return(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        return_date: date | str,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """HR records that the employee came back on ``return_date``: the
        leave now ends that day, later attendance rows are cleared and the
        unused days go back to the balance."""
        if not await LeaveWorkflowService.is_hr(db, actor_id):
            raise ForbiddenException("Only HR can process early return")

        leave_request = await LeaveWorkflowService._load_request(db, request_id)
        if leave_request.status != LeaveStatus.approved.value:
            raise ValidationException(
                {"status": ["Early return applies to approved leave only"]}
            )

        early = parse_iso_date(return_date)
        if early < leave_request.start_date or early > leave_request.end_date:
            raise ValidationException(
                {"return_date": ["early_return_date must be within leave period"]}
            )

        original_end = leave_request.end_date
        original_days = leave_request.days_count
        requester = await db.get(Profile, leave_request.user_id)
        new_days = await count_leave_days(
            db,
            start_date=leave_request.start_date,
            end_date=early,
            accrual_mode=leave_request.requested_days_mode or AccrualMode.calendar_days.value,
            location=requester.location if requester else None,
        )

        leave_request.end_date = early
        leave_request.resume_date = add_days(early, 1)
        leave_request.days_count = new_days
        leave_request.hr_comment = reason or "Early return processed by HR"
        leave_request.updated_at = datetime.now(timezone.utc)
        await db.flush()

        if early < original_end:
            await sync_attendance_for_approved_leave(
                db,
                leave_request.user_id,
                add_days(early, 1),
                original_end,
                AttendanceSyncMode.clear,
            )
        await restore_leave_balance(
            db,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.start_date.year,
            original_days - new_days,
        )
        return leave_request

    @staticmethod
    async def extend(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        extension_days: int,
        reason: Optional[str] = None,
        mailer: Optional[LeaveMailer] = None,
    ) -> LeaveRequest:
        """Ask for ``extension_days`` more right after approved leave ends.

        The extension is a new request linked through ``original_request_id``.
        It keeps the reliever, supervisor and day-counting mode of the
        original and goes through the full approval chain again.
        """
        original = await LeaveWorkflowService._load_request(db, request_id)
        if original.user_id != actor_id:
            raise ForbiddenException("Only requester can request extension")
        if original.status != LeaveStatus.approved.value:
            raise ValidationException(
                {"status": ["Only approved leave can be extended"]}
            )
        if extension_days <= 0:
            raise ValidationException(
                {"extension_days": ["Valid extension_days is required"]}
            )
        validate_days_count(extension_days)

        start = add_days(original.end_date, 1)
        requester = await db.get(Profile, original.user_id)
        location = requester.location if requester else None
        accrual_mode = original.requested_days_mode or AccrualMode.calendar_days.value
        dates = await compute_leave_dates(
            db,
            start_date=start,
            days_count=extension_days,
            accrual_mode=accrual_mode,
            location=location,
        )
        await assert_sufficient_balance(
            db, original.user_id, original.leave_type_id, start.year, extension_days,
        )
        await assert_no_overlap(db, original.user_id, start, dates.end_date)
        if original.reliever_id is not None:
            await assert_reliever_availability(
                db, original.reliever_id, start, dates.end_date,
            )

        extension = LeaveRequest(
            user_id=original.user_id,
            leave_type_id=original.leave_type_id,
            start_date=start,
            end_date=dates.end_date,
            resume_date=dates.resume_date,
            days_count=extension_days,
            reason=reason or f"Extension request linked to {original.id}",
            status=LeaveStatus.pending.value,
            reliever_id=original.reliever_id,
            supervisor_id=original.supervisor_id,
            requested_days_mode=accrual_mode,
            original_request_id=original.id,
            request_kind=RequestKind.extension.value,
        )
        first_stage = LeaveWorkflowService._first_open_stage(
            extension, ApprovalStage.reliever_pending,
        )
        extension.approval_stage = first_stage.value

        try:
            db.add(extension)
            await db.flush()
        except SQLAlchemyError as exc:
            raise StoreException("Failed to create extension request") from exc

        logger.info(
            "Extension %s of %d day(s) requested for leave request %s",
            extension.id, extension_days, original.id,
        )
        await notify_users(
            db,
            user_ids=await LeaveWorkflowService._stage_recipients(db, extension, first_stage),
            title="Leave extension awaiting your approval",
            message=f"A leave extension for {LeaveWorkflowService._span(extension)} needs your review.",
            actor_id=actor_id,
            entity_id=extension.id,
            mailer=mailer,
        )
        return extension

    # ─────────────────────────────────────────────────────────────────
    # Read / edit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_request(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> LeaveRequest:
        """Request with approvals and evidence loaded.

        Visible to the requester, the reliever, the supervisor and HR.
        """
        try:
            result = await db.execute(
                select(LeaveRequest)
                .where(LeaveRequest.id == request_id)
                .options(
                    selectinload(LeaveRequest.approvals),
                    selectinload(LeaveRequest.evidence),
                )
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            raise StoreException("Failed to load leave request") from exc
        leave_request = result.scalars().first()
        if leave_request is None:
            raise NotFoundException("LeaveRequest", request_id, detail="Leave request not found")

        participants = {
            leave_request.user_id,
            leave_request.reliever_id,
            leave_request.supervisor_id,
        }
        if actor_id not in participants and not await LeaveWorkflowService.is_hr(db, actor_id):
            raise ForbiddenException("You cannot view this leave request")
        return leave_request

    @staticmethod
    async def edit(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        requester: RequesterProfile,
        leave_type_id: uuid.UUID,
        start_date: date | str,
        days_count: int,
        reason: Optional[str] = None,
        reliever_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None,
        mailer: Optional[LeaveMailer] = None,
        today: Optional[date] = None,
    ) -> LeaveRequest:
        """Replace the details of the requester's own pending request.

        The edited request runs the full preflight again (ignoring itself for
        overlap) and restarts at the first approval stage.
        """
        leave_request = await LeaveWorkflowService._load_request(db, request_id)
        if leave_request.user_id != requester.id:
            raise ForbiddenException("You can only edit your own leave requests")
        if leave_request.status not in (
            LeaveStatus.pending.value, LeaveStatus.pending_evidence.value,
        ):
            raise ValidationException(
                {"status": ["Only pending leave requests can be edited"]}
            )

        check = await LeaveWorkflowService.preflight(
            db,
            requester=requester,
            leave_type_id=leave_type_id,
            start_date=start_date,
            days_count=days_count,
            reliever_id=reliever_id,
            location=location,
            exclude_request_id=leave_request.id,
            today=today,
        )

        leave_request.leave_type_id = leave_type_id
        leave_request.start_date = parse_iso_date(start_date)
        leave_request.end_date = check.dates.end_date
        leave_request.resume_date = check.dates.resume_date
        leave_request.days_count = days_count
        leave_request.reason = reason
        leave_request.reliever_id = reliever_id
        leave_request.requested_days_mode = check.policy.accrual_mode.value
        leave_request.status = check.initial_status.value
        first_stage = LeaveWorkflowService._first_open_stage(
            leave_request, ApprovalStage.reliever_pending,
        )
        leave_request.approval_stage = first_stage.value
        leave_request.updated_at = datetime.now(timezone.utc)

        try:
            await db.flush()
        except SQLAlchemyError as exc:
            raise StoreException("Failed to update leave request") from exc

        if check.initial_status == LeaveStatus.pending:
            await notify_users(
                db,
                user_ids=await LeaveWorkflowService._stage_recipients(db, leave_request, first_stage),
                title="Updated leave request awaiting your approval",
                message=(
                    f"A leave request was updated to {LeaveWorkflowService._span(leave_request)} "
                    "and needs your review."
                ),
                actor_id=requester.id,
                entity_id=leave_request.id,
                mailer=mailer,
            )
        return leave_request

    @staticmethod
    async def simulate_policies(
        db: AsyncSession,
        *,
        requester: RequesterProfile,
        start_date: date | str,
        days_count: int = 1,
        today: Optional[date] = None,
    ) -> list[PolicySimulationItem]:
        """Evaluate every leave type's policy for a sample request."""
        start = parse_iso_date(start_date)
        validate_days_count(days_count)
        try:
            result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        except SQLAlchemyError as exc:
            raise StoreException("Failed to load leave types") from exc

        items: list[PolicySimulationItem] = []
        for leave_type in result.scalars().all():
            policy = await get_leave_policy(db, leave_type.id)
            brief = LeaveTypeBrief.model_validate(leave_type)
            eligibility = await evaluate_leave_eligibility(
                db,
                policy=policy,
                requester_profile=requester,
                leave_type=brief,
                start_date=start,
                days_count=days_count,
                today=today,
            )
            items.append(PolicySimulationItem(
                leave_type=brief,
                policy=policy,
                eligibility_status=eligibility.status,
                eligibility_reason=eligibility.reason,
                required_documents=eligibility.required_documents,
                missing_documents=eligibility.missing_documents,
            ))
        return items
