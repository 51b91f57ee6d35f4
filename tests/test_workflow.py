"""Workflow service tests — submit, decisions, withdraw/cancel, early return, extension, edit, balances."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.attendance.models import AttendanceRecord
from leave_workflow.attendance.service import sync_attendance_for_approved_leave
from leave_workflow.common.constants import AccrualMode, ApprovalStage, LeaveStatus
from leave_workflow.common.exceptions import ForbiddenException, ValidationException
from leave_workflow.core_hr.models import Profile
from leave_workflow.leave.balances import get_balance
from leave_workflow.leave.models import LeaveApproval, LeaveRequest
from leave_workflow.leave.schemas import RequesterProfile
from leave_workflow.leave.workflow import LeaveWorkflowService
from tests.conftest import (
    _seed_balance,
    _seed_leave_type,
    _seed_policy,
    _seed_profile,
    _seed_request,
)

TODAY = date(2026, 2, 2)
# Monday
START = date(2026, 3, 2)


@dataclass
class Team:
    requester: Profile
    reliever: Profile
    supervisor: Profile
    hr: Profile
    leave_type_id: uuid.UUID

    @property
    def requester_snapshot(self) -> RequesterProfile:
        return RequesterProfile.model_validate(self.requester)


async def _seed_team(db: AsyncSession) -> Team:
    department_id = uuid.uuid4()
    supervisor = await _seed_profile(
        db,
        full_name="Sam Lead",
        company_email="sam@acoblighting.com",
        department_id=department_id,
        is_department_lead=True,
    )
    reliever = await _seed_profile(
        db, full_name="Bayo Ade", company_email="bayo@acoblighting.com",
        department_id=department_id,
    )
    requester = await _seed_profile(
        db, full_name="Ada Obi", company_email="ada@acoblighting.com",
        department_id=department_id,
    )
    hr = await _seed_profile(
        db, full_name="Hana Bello", company_email="hr@acoblighting.com", role="hr",
    )
    lt = await _seed_leave_type(db)
    return Team(requester, reliever, supervisor, hr, lt.id)


async def _submit(db: AsyncSession, team: Team, mailer=None, **overrides) -> LeaveRequest:
    kwargs = dict(
        requester=team.requester_snapshot,
        leave_type_id=team.leave_type_id,
        start_date=START,
        days_count=5,
        reason="Family trip",
        reliever_id=team.reliever.id,
        mailer=mailer,
        today=TODAY,
    )
    kwargs.update(overrides)
    return await LeaveWorkflowService.submit(db, **kwargs)


async def _seed_approved(db: AsyncSession, team: Team) -> LeaveRequest:
    leave_request = await _seed_request(
        db,
        user_id=team.requester.id,
        leave_type_id=team.leave_type_id,
        start_date=START,
        end_date=date(2026, 3, 6),
        status=LeaveStatus.approved,
        approval_stage="completed",
        reliever_id=team.reliever.id,
        supervisor_id=team.supervisor.id,
    )
    await sync_attendance_for_approved_leave(
        db, team.requester.id, leave_request.start_date, leave_request.end_date, "set",
    )
    return leave_request


async def _attendance_days(db: AsyncSession, user_id) -> list[date]:
    result = await db.execute(
        select(AttendanceRecord.date)
        .where(AttendanceRecord.user_id == user_id)
        .order_by(AttendanceRecord.date)
    )
    return list(result.scalars().all())


class TestSubmit:

    async def test_eligible_request_goes_to_reliever(self, db: AsyncSession, mailer):
        team = await _seed_team(db)

        leave_request = await _submit(db, team, mailer)

        assert leave_request.status == LeaveStatus.pending.value
        assert leave_request.approval_stage == ApprovalStage.reliever_pending.value
        assert leave_request.end_date == date(2026, 3, 6)
        assert leave_request.resume_date == date(2026, 3, 7)
        assert leave_request.supervisor_id == team.supervisor.id
        assert leave_request.requested_days_mode == "calendar_days"
        assert [p.to for p in mailer.sent] == [["bayo@acoblighting.com"]]

    async def test_without_reliever_starts_at_supervisor(self, db: AsyncSession, mailer):
        team = await _seed_team(db)

        leave_request = await _submit(db, team, mailer, reliever_id=None)

        assert leave_request.approval_stage == ApprovalStage.supervisor_pending.value
        assert [p.to for p in mailer.sent] == [["sam@acoblighting.com"]]

    async def test_missing_evidence_holds_request(self, db: AsyncSession, mailer):
        team = await _seed_team(db)
        await _seed_policy(
            db, team.leave_type_id, eligibility_conditions={"requires_study_purpose": True},
        )

        leave_request = await _submit(db, team, mailer)

        assert leave_request.status == LeaveStatus.pending_evidence.value
        assert leave_request.approval_stage == ApprovalStage.reliever_pending.value
        assert mailer.sent == []

    async def test_ineligible_request_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        await _seed_policy(db, team.leave_type_id, notice_days=60)

        with pytest.raises(ValidationException) as exc_info:
            await _submit(db, team)

        assert exc_info.value.detail == "This leave type requires at least 60 days notice."
        count = await db.scalar(select(func.count()).select_from(LeaveRequest))
        assert count == 0

    async def test_overlapping_request_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        await _submit(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await _submit(db, team, start_date=date(2026, 3, 5), days_count=2)

        assert "dates" in exc_info.value.errors

    async def test_reliever_on_leave_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        await _seed_request(
            db,
            user_id=team.reliever.id,
            leave_type_id=team.leave_type_id,
            start_date=date(2026, 3, 4),
            end_date=date(2026, 3, 4),
            status=LeaveStatus.approved,
        )

        with pytest.raises(ValidationException) as exc_info:
            await _submit(db, team)

        assert "reliever_id" in exc_info.value.errors

    async def test_business_day_policy_sets_dates(self, db: AsyncSession):
        team = await _seed_team(db)
        await _seed_policy(db, team.leave_type_id, accrual_mode=AccrualMode.business_days)

        leave_request = await _submit(db, team, start_date=date(2026, 3, 5), days_count=3)

        assert leave_request.end_date == date(2026, 3, 9)
        assert leave_request.resume_date == date(2026, 3, 10)
        assert leave_request.requested_days_mode == "business_days"


class TestDecide:

    async def test_full_chain_approves_and_syncs_attendance(self, db: AsyncSession, mailer):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.reliever.id,
            action="approved", mailer=mailer,
        )
        assert leave_request.approval_stage == ApprovalStage.supervisor_pending.value

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.supervisor.id,
            action="approved", mailer=mailer,
        )
        assert leave_request.approval_stage == ApprovalStage.hr_pending.value
        assert mailer.sent[-1].to == ["hr@acoblighting.com"]

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.hr.id,
            action="approved", comments="Enjoy", mailer=mailer,
        )

        assert leave_request.status == LeaveStatus.approved.value
        assert leave_request.approval_stage == "completed"
        assert mailer.sent[-1].to == ["ada@acoblighting.com"]
        assert await _attendance_days(db, team.requester.id) == [
            date(2026, 3, d) for d in range(2, 7)
        ]
        levels = (await db.execute(
            select(LeaveApproval.approval_level)
            .where(LeaveApproval.leave_request_id == leave_request.id)
            .order_by(LeaveApproval.approval_level)
        )).scalars().all()
        assert levels == [1, 2, 3]

    async def test_rejection_closes_request(self, db: AsyncSession, mailer):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.reliever.id,
            action="rejected", comments="I am travelling", mailer=mailer,
        )

        assert leave_request.status == LeaveStatus.rejected.value
        assert leave_request.approval_stage == "rejected"
        assert leave_request.rejected_reason == "I am travelling"
        assert mailer.sent[-1].to == ["ada@acoblighting.com"]
        assert "I am travelling" in mailer.sent[-1].message

    async def test_wrong_approver_forbidden(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        with pytest.raises(ForbiddenException) as exc_info:
            await LeaveWorkflowService.decide(
                db, request_id=leave_request.id, approver_id=team.supervisor.id,
                action="approved",
            )
        assert exc_info.value.detail == "You are not the approver for this stage."

    async def test_hr_can_act_at_any_stage(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.hr.id, action="approved",
        )

        assert leave_request.approval_stage == ApprovalStage.supervisor_pending.value

    async def test_pending_evidence_blocks_decision(self, db: AsyncSession):
        team = await _seed_team(db)
        await _seed_policy(
            db, team.leave_type_id, eligibility_conditions={"requires_study_purpose": True},
        )
        leave_request = await _submit(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.decide(
                db, request_id=leave_request.id, approver_id=team.reliever.id,
                action="approved",
            )
        assert exc_info.value.detail == "Leave request is waiting for evidence verification."

    async def test_closed_request_cannot_be_decided(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.decide(
                db, request_id=leave_request.id, approver_id=team.hr.id, action="approved",
            )
        assert exc_info.value.detail == "Leave request is already approved."

    async def test_invalid_action_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        with pytest.raises(ValidationException):
            await LeaveWorkflowService.decide(
                db, request_id=leave_request.id, approver_id=team.reliever.id,
                action="escalate",
            )


class TestCancel:

    async def test_requester_withdraws_pending(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        await LeaveWorkflowService.cancel(
            db, request_id=leave_request.id, actor_id=team.requester.id,
        )

        assert leave_request.status == LeaveStatus.cancelled.value
        assert leave_request.approval_stage == "cancelled"
        assert leave_request.rejected_reason == "Withdrawn by requester"

    async def test_only_requester_withdraws(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        with pytest.raises(ForbiddenException) as exc_info:
            await LeaveWorkflowService.cancel(
                db, request_id=leave_request.id, actor_id=team.hr.id,
            )
        assert exc_info.value.detail == "Only requester can withdraw leave"

    async def test_requester_cancels_approved_before_start(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        await LeaveWorkflowService.cancel(
            db, request_id=leave_request.id, actor_id=team.requester.id,
            reason="Plans changed", today=TODAY,
        )

        assert leave_request.status == LeaveStatus.cancelled.value
        assert leave_request.rejected_reason == "Plans changed"
        db.expire_all()
        assert await _attendance_days(db, team.requester.id) == []

    async def test_requester_cannot_cancel_started_leave(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.cancel(
                db, request_id=leave_request.id, actor_id=team.requester.id, today=START,
            )
        assert exc_info.value.detail == "You can only cancel leave before it starts"

    async def test_hr_cancels_started_leave(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        await LeaveWorkflowService.cancel(
            db, request_id=leave_request.id, actor_id=team.hr.id, today=date(2026, 3, 4),
        )

        assert leave_request.status == LeaveStatus.cancelled.value
        assert leave_request.rejected_reason == "Cancelled"

    async def test_colleague_cannot_cancel_approved(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ForbiddenException) as exc_info:
            await LeaveWorkflowService.cancel(
                db, request_id=leave_request.id, actor_id=team.reliever.id, today=TODAY,
            )
        assert exc_info.value.detail == "Only requester or HR can cancel approved leave"

    async def test_rejected_request_cannot_be_cancelled(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_request(
            db,
            user_id=team.requester.id,
            leave_type_id=team.leave_type_id,
            start_date=START,
            end_date=date(2026, 3, 6),
            status=LeaveStatus.rejected,
            approval_stage="rejected",
        )

        with pytest.raises(ValidationException):
            await LeaveWorkflowService.cancel(
                db, request_id=leave_request.id, actor_id=team.requester.id,
            )


class TestEarlyReturn:

    async def test_hr_shortens_leave(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        await LeaveWorkflowService.early_return(
            db, request_id=leave_request.id, actor_id=team.hr.id, return_date="2026-03-04",
        )

        assert leave_request.end_date == date(2026, 3, 4)
        assert leave_request.resume_date == date(2026, 3, 5)
        assert leave_request.days_count == 3
        assert leave_request.hr_comment == "Early return processed by HR"
        db.expire_all()
        assert await _attendance_days(db, team.requester.id) == [
            date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4),
        ]

    async def test_requires_hr(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ForbiddenException) as exc_info:
            await LeaveWorkflowService.early_return(
                db, request_id=leave_request.id, actor_id=team.requester.id,
                return_date=date(2026, 3, 4),
            )
        assert exc_info.value.detail == "Only HR can process early return"

    async def test_date_outside_leave_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.early_return(
                db, request_id=leave_request.id, actor_id=team.hr.id,
                return_date=date(2026, 3, 9),
            )
        assert exc_info.value.detail == "early_return_date must be within leave period"


class TestBalanceLifecycle:

    async def test_final_approval_deducts_balance(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        for approver in (team.reliever, team.supervisor, team.hr):
            await LeaveWorkflowService.decide(
                db, request_id=leave_request.id, approver_id=approver.id, action="approved",
            )

        balance = await get_balance(db, team.requester.id, team.leave_type_id, 2026)
        assert balance.allocated_days == 20
        assert balance.used_days == 5

    async def test_intermediate_approval_leaves_balance_alone(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.reliever.id, action="approved",
        )

        assert await get_balance(db, team.requester.id, team.leave_type_id, 2026) is None

    async def test_submit_over_remaining_balance_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            allocated_days=10, used_days=8,
        )

        with pytest.raises(ValidationException) as exc_info:
            await _submit(db, team)

        assert exc_info.value.detail == "Insufficient leave balance. You have 2 days remaining."

    async def test_cancel_approved_restores_balance(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)
        balance = await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            used_days=5,
        )

        await LeaveWorkflowService.cancel(
            db, request_id=leave_request.id, actor_id=team.requester.id, today=TODAY,
        )

        assert balance.used_days == 0

    async def test_withdraw_pending_leaves_balance_alone(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        balance = await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            used_days=4,
        )

        await LeaveWorkflowService.cancel(
            db, request_id=leave_request.id, actor_id=team.requester.id,
        )

        assert balance.used_days == 4

    async def test_early_return_restores_unused_days(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)
        balance = await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            used_days=5,
        )

        await LeaveWorkflowService.early_return(
            db, request_id=leave_request.id, actor_id=team.hr.id, return_date="2026-03-04",
        )

        assert balance.used_days == 3

    async def test_early_return_counts_business_days(self, db: AsyncSession):
        team = await _seed_team(db)
        # Thursday to Wednesday: five business days
        leave_request = await _seed_request(
            db,
            user_id=team.requester.id,
            leave_type_id=team.leave_type_id,
            start_date=date(2026, 3, 5),
            end_date=date(2026, 3, 11),
            status=LeaveStatus.approved,
            approval_stage="completed",
        )
        leave_request.requested_days_mode = "business_days"
        leave_request.days_count = 5
        await db.flush()
        balance = await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            used_days=5,
        )

        await LeaveWorkflowService.early_return(
            db, request_id=leave_request.id, actor_id=team.hr.id, return_date=date(2026, 3, 9),
        )

        assert leave_request.days_count == 3
        assert balance.used_days == 3


class TestExtend:

    async def test_requester_extends_approved_leave(self, db: AsyncSession, mailer):
        team = await _seed_team(db)
        original = await _seed_approved(db, team)

        extension = await LeaveWorkflowService.extend(
            db, request_id=original.id, actor_id=team.requester.id,
            extension_days=3, mailer=mailer,
        )

        assert extension.id != original.id
        assert extension.start_date == date(2026, 3, 7)
        assert extension.end_date == date(2026, 3, 9)
        assert extension.resume_date == date(2026, 3, 10)
        assert extension.days_count == 3
        assert extension.status == LeaveStatus.pending.value
        assert extension.approval_stage == ApprovalStage.reliever_pending.value
        assert extension.reliever_id == team.reliever.id
        assert extension.supervisor_id == team.supervisor.id
        assert extension.request_kind == "extension"
        assert extension.original_request_id == original.id
        assert extension.reason == f"Extension request linked to {original.id}"
        assert original.status == LeaveStatus.approved.value
        assert [p.to for p in mailer.sent] == [["bayo@acoblighting.com"]]

    async def test_extension_goes_through_approval_chain(self, db: AsyncSession):
        team = await _seed_team(db)
        original = await _seed_approved(db, team)
        extension = await LeaveWorkflowService.extend(
            db, request_id=original.id, actor_id=team.requester.id,
            extension_days=2, reason="Flight delayed",
        )

        for approver in (team.reliever, team.supervisor, team.hr):
            await LeaveWorkflowService.decide(
                db, request_id=extension.id, approver_id=approver.id, action="approved",
            )

        assert extension.reason == "Flight delayed"
        assert extension.status == LeaveStatus.approved.value
        db.expire_all()
        assert await _attendance_days(db, team.requester.id) == [
            date(2026, 3, d) for d in range(2, 9)
        ]

    async def test_only_requester_extends(self, db: AsyncSession):
        team = await _seed_team(db)
        original = await _seed_approved(db, team)

        with pytest.raises(ForbiddenException) as exc_info:
            await LeaveWorkflowService.extend(
                db, request_id=original.id, actor_id=team.hr.id, extension_days=2,
            )
        assert exc_info.value.detail == "Only requester can request extension"

    async def test_pending_request_cannot_be_extended(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.extend(
                db, request_id=leave_request.id, actor_id=team.requester.id, extension_days=2,
            )
        assert exc_info.value.detail == "Only approved leave can be extended"

    async def test_non_positive_days_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        original = await _seed_approved(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.extend(
                db, request_id=original.id, actor_id=team.requester.id, extension_days=0,
            )
        assert exc_info.value.detail == "Valid extension_days is required"

    async def test_extension_checks_remaining_balance(self, db: AsyncSession):
        team = await _seed_team(db)
        original = await _seed_approved(db, team)
        await _seed_balance(
            db, user_id=team.requester.id, leave_type_id=team.leave_type_id, year=2026,
            allocated_days=6, used_days=5,
        )

        with pytest.raises(ValidationException) as exc_info:
            await LeaveWorkflowService.extend(
                db, request_id=original.id, actor_id=team.requester.id, extension_days=2,
            )
        assert "days_count" in exc_info.value.errors


class TestEdit:

    async def _edit(self, db: AsyncSession, team: Team, leave_request, **overrides):
        kwargs = dict(
            request_id=leave_request.id,
            requester=team.requester_snapshot,
            leave_type_id=team.leave_type_id,
            start_date=START,
            days_count=3,
            reason="Shorter trip",
            reliever_id=team.reliever.id,
            today=TODAY,
        )
        kwargs.update(overrides)
        return await LeaveWorkflowService.edit(db, **kwargs)

    async def test_owner_edits_pending_request(self, db: AsyncSession, mailer):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)

        # the new range overlaps the request's own old range
        edited = await self._edit(db, team, leave_request, mailer=mailer)

        assert edited.id == leave_request.id
        assert edited.end_date == date(2026, 3, 4)
        assert edited.resume_date == date(2026, 3, 5)
        assert edited.days_count == 3
        assert edited.reason == "Shorter trip"
        assert [p.to for p in mailer.sent] == [["bayo@acoblighting.com"]]

    async def test_edit_restarts_approval_chain(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.reliever.id, action="approved",
        )

        await self._edit(db, team, leave_request, start_date=date(2026, 3, 9))

        assert leave_request.approval_stage == ApprovalStage.reliever_pending.value
        assert leave_request.start_date == date(2026, 3, 9)

    async def test_other_user_cannot_edit(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        stranger = RequesterProfile.model_validate(team.reliever)

        with pytest.raises(ForbiddenException) as exc_info:
            await self._edit(db, team, leave_request, requester=stranger)
        assert exc_info.value.detail == "You can only edit your own leave requests"

    async def test_approved_request_cannot_be_edited(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _seed_approved(db, team)

        with pytest.raises(ValidationException) as exc_info:
            await self._edit(db, team, leave_request)
        assert exc_info.value.detail == "Only pending leave requests can be edited"

    async def test_edit_into_other_request_rejected(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        await _submit(db, team, start_date=date(2026, 3, 16), days_count=2)

        with pytest.raises(ValidationException) as exc_info:
            await self._edit(db, team, leave_request, start_date=date(2026, 3, 15))
        assert "dates" in exc_info.value.errors


class TestGetRequest:

    async def test_participants_see_approval_trail(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        await LeaveWorkflowService.decide(
            db, request_id=leave_request.id, approver_id=team.reliever.id,
            action="approved", comments="Covered",
        )

        for viewer in (team.requester, team.reliever, team.supervisor, team.hr):
            loaded = await LeaveWorkflowService.get_request(
                db, request_id=leave_request.id, actor_id=viewer.id,
            )
            assert [a.approval_level for a in loaded.approvals] == [1]
            assert loaded.approvals[0].comments == "Covered"
            assert loaded.evidence == []

    async def test_outsider_forbidden(self, db: AsyncSession):
        team = await _seed_team(db)
        leave_request = await _submit(db, team)
        outsider = await _seed_profile(db, full_name="Other Dept")

        with pytest.raises(ForbiddenException):
            await LeaveWorkflowService.get_request(
                db, request_id=leave_request.id, actor_id=outsider.id,
            )


class TestSimulatePolicies:

    async def test_every_leave_type_evaluated_by_name(self, db: AsyncSession):
        team = await _seed_team(db)
        compassionate = await _seed_leave_type(db, code="CMP", name="Compassionate Leave")
        await _seed_policy(db, compassionate.id, notice_days=60)

        items = await LeaveWorkflowService.simulate_policies(
            db, requester=team.requester_snapshot, start_date=START, days_count=2, today=TODAY,
        )

        assert [item.leave_type.name for item in items] == ["Annual Leave", "Compassionate Leave"]
        assert items[0].eligibility_status == "eligible"
        assert items[1].eligibility_status == "not_eligible"
        assert items[1].eligibility_reason == "This leave type requires at least 60 days notice."
        assert items[1].policy.notice_days == 60
