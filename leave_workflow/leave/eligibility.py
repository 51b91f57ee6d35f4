"""Eligibility evaluator — policy + requester profile + request → verdict.

Restriction checks short-circuit with ``not_eligible``. Evidence rules
accumulate, so several documents can be flagged by one evaluation. The
per-request day cap is checked last and overrides any accumulated evidence.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import (
    DocumentType,
    EligibilityStatus,
    LeaveEligibility,
    LifeEventType,
    PREGNANCY_PROFILE_STATUSES,
)
from leave_workflow.common.dates import add_days, diff_months, parse_iso_date, utc_today
from leave_workflow.config import settings
from leave_workflow.core_hr.models import EmployeeLifeEvent
from leave_workflow.leave.schemas import (
    EligibilityResult,
    LeavePolicyRecord,
    LeaveTypeBrief,
    RequesterProfile,
)


class _DocumentSet:
    """Insertion-ordered set of document types."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._items: dict[str, None] = dict.fromkeys(initial)

    def add(self, document: str) -> None:
        self._items.setdefault(document, None)

    def __len__(self) -> int:
        return len(self._items)

    def as_list(self) -> list[str]:
        return list(self._items)


async def has_life_event(
    db: AsyncSession,
    employee_id: uuid.UUID,
    event_types: Iterable[LifeEventType],
    window_days: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> bool:
    """True if the employee has one of ``event_types`` recorded within the
    last ``window_days`` days (any date when no window is given)."""
    query = (
        select(EmployeeLifeEvent.id)
        .where(
            EmployeeLifeEvent.employee_id == employee_id,
            EmployeeLifeEvent.event_type.in_([t.value for t in event_types]),
        )
        .order_by(EmployeeLifeEvent.event_date.desc())
        .limit(1)
    )
    if window_days and window_days > 0:
        earliest = add_days(today or utc_today(), -window_days)
        query = query.where(EmployeeLifeEvent.event_date >= earliest)

    result = await db.execute(query)
    return result.first() is not None


def _not_eligible(reason: str, required: _DocumentSet) -> EligibilityResult:
    return EligibilityResult(
        status=EligibilityStatus.not_eligible,
        reason=reason,
        required_documents=required.as_list(),
        missing_documents=[],
    )


def check_restrictions(
    policy: LeavePolicyRecord,
    profile: RequesterProfile,
    start: date,
    today: date,
) -> Optional[str]:
    """Return the reason the requester is barred, or None."""
    gender = (profile.gender or "unspecified").lower()

    if policy.eligibility == LeaveEligibility.female_only and gender != "female":
        return "This leave type is only available to female employees."
    if policy.eligibility == LeaveEligibility.male_only and gender != "male":
        return "This leave type is only available to male employees."

    if policy.min_tenure_months > 0:
        if profile.employment_date is None:
            return "Employment date is required to validate tenure policy."
        if diff_months(profile.employment_date, start) < policy.min_tenure_months:
            return f"This leave type requires at least {policy.min_tenure_months} months tenure."

    if policy.notice_days > 0 and start < add_days(today, policy.notice_days):
        return f"This leave type requires at least {policy.notice_days} days notice."

    conditions = policy.eligibility_conditions
    if conditions.allowed_employment_types:
        if profile.employment_type not in conditions.allowed_employment_types:
            return "Your employment type is not eligible for this leave type."

    if conditions.requires_marital_status_in:
        if profile.marital_status not in conditions.requires_marital_status_in:
            return "Marital status requirement is not satisfied for this leave type."

    if conditions.requires_has_children and not profile.has_children:
        return "This leave type requires employees with children."

    return None


async def evaluate_leave_eligibility(
    db: AsyncSession,
    *,
    policy: LeavePolicyRecord,
    requester_profile: RequesterProfile,
    leave_type: LeaveTypeBrief,
    start_date: date | str,
    days_count: int,
    today: Optional[date] = None,
) -> EligibilityResult:
    """Evaluate a prospective request against ``policy``.

    Evidence shortfalls are reported as ``missing_evidence``, never raised.
    """
    today = today or utc_today()
    start = parse_iso_date(start_date)
    required = _DocumentSet(policy.required_documents)
    missing = _DocumentSet()

    reason = check_restrictions(policy, requester_profile, start, today)
    if reason is not None:
        return _not_eligible(reason, required)

    conditions = policy.eligibility_conditions
    rules = policy.frequency_rules
    window = conditions.event_window_days or settings.LIFE_EVENT_DEFAULT_WINDOW_DAYS

    def flag(document: DocumentType) -> None:
        required.add(document.value)
        missing.add(document.value)

    if conditions.requires_pregnancy_event:
        profile_satisfies = (
            (requester_profile.pregnancy_status or "").lower() in PREGNANCY_PROFILE_STATUSES
        )
        if not profile_satisfies and not await has_life_event(
            db,
            requester_profile.id,
            (LifeEventType.pregnancy, LifeEventType.childbirth),
            window,
            today=today,
        ):
            flag(DocumentType.medical_confirmation)

    if conditions.requires_childbirth_or_adoption_event:
        if not await has_life_event(
            db,
            requester_profile.id,
            (LifeEventType.childbirth, LifeEventType.adoption),
            window,
            today=today,
        ):
            flag(DocumentType.birth_or_adoption_proof)

    if conditions.requires_bereavement_event:
        if not await has_life_event(
            db, requester_profile.id, (LifeEventType.bereavement,), window, today=today,
        ):
            flag(DocumentType.bereavement_declaration)

    # No profile signal or life event covers study leave
    if conditions.requires_study_purpose:
        flag(DocumentType.admission_or_exam_letter)

    threshold = rules.medical_certificate_after_days
    if threshold > 0 and days_count > threshold:
        flag(DocumentType.medical_certificate)

    cap = rules.max_days_per_request
    if cap > 0 and days_count > cap:
        return _not_eligible(
            f"This leave type allows at most {cap} days per request.", required,
        )

    if missing:
        return EligibilityResult(
            status=EligibilityStatus.missing_evidence,
            reason=(
                f"Additional evidence is required before {leave_type.label} "
                "can proceed for approval."
            ),
            required_documents=required.as_list(),
            missing_documents=missing.as_list(),
        )

    return EligibilityResult(
        status=EligibilityStatus.eligible,
        reason=None,
        required_documents=required.as_list(),
        missing_documents=[],
    )
