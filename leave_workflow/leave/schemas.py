"""Leave Pydantic v2 schemas — policy records, eligibility verdicts, workflow I/O.

Naming conventions:
  - *Record / *Result   → values computed by the workflow (not stored)
  - *Request            → request bodies (write)
  - *Out                → response bodies (read)
  - *Brief              → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leave_workflow.common.constants import (
    MAX_LEAVE_DAYS,
    AccrualMode,
    ApprovalAction,
    EligibilityStatus,
    EvidenceStatus,
    LeaveEligibility,
    LeaveStatus,
)


def _string_list(value: Any) -> list[str]:
    """Keep only non-blank strings, preserving order."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _non_negative_int(value: Any) -> int:
    try:
        number = int(float(value or 0))
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


# ═════════════════════════════════════════════════════════════════════
# Policy
# ═════════════════════════════════════════════════════════════════════


class EligibilityConditions(BaseModel):
    """Structured view of ``leave_policies.eligibility_conditions``."""

    model_config = ConfigDict(extra="ignore")

    allowed_employment_types: list[str] = Field(default_factory=list)
    requires_marital_status_in: list[str] = Field(default_factory=list)
    requires_has_children: bool = False
    requires_pregnancy_event: bool = False
    requires_childbirth_or_adoption_event: bool = False
    requires_bereavement_event: bool = False
    requires_study_purpose: bool = False
    event_window_days: Optional[int] = None

    @field_validator("allowed_employment_types", "requires_marital_status_in", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> list[str]:
        return _string_list(v)

    @field_validator(
        "requires_has_children",
        "requires_pregnancy_event",
        "requires_childbirth_or_adoption_event",
        "requires_bereavement_event",
        "requires_study_purpose",
        mode="before",
    )
    @classmethod
    def _strict_true(cls, v: Any) -> bool:
        # Only a literal JSON true switches a requirement on
        return v is True

    @field_validator("event_window_days", mode="before")
    @classmethod
    def _window(cls, v: Any) -> Optional[int]:
        number = _non_negative_int(v)
        return number or None


class FrequencyRules(BaseModel):
    """Structured view of ``leave_policies.frequency_rules``; 0 disables a rule."""

    model_config = ConfigDict(extra="ignore")

    medical_certificate_after_days: int = 0
    max_days_per_request: int = 0

    @field_validator("medical_certificate_after_days", "max_days_per_request", mode="before")
    @classmethod
    def _ints(cls, v: Any) -> int:
        return _non_negative_int(v)


class LeavePolicyRecord(BaseModel):
    """Effective policy for one leave type, after schema/default fallback."""

    model_config = ConfigDict(from_attributes=True)

    leave_type_id: uuid.UUID
    annual_days: int = 0
    eligibility: LeaveEligibility = LeaveEligibility.all
    min_tenure_months: int = 0
    notice_days: int = 0
    accrual_mode: AccrualMode = AccrualMode.calendar_days
    is_active: bool = True
    eligibility_conditions: EligibilityConditions = Field(default_factory=EligibilityConditions)
    required_documents: list[str] = Field(default_factory=list)
    frequency_rules: FrequencyRules = Field(default_factory=FrequencyRules)
    override_allowed: bool = True

    @field_validator("eligibility_conditions", "frequency_rules", mode="before")
    @classmethod
    def _empty_map(cls, v: Any) -> Any:
        return v if v else {}

    @field_validator("required_documents", mode="before")
    @classmethod
    def _documents(cls, v: Any) -> list[str]:
        return _string_list(v)

    @field_validator("override_allowed", mode="before")
    @classmethod
    def _override(cls, v: Any) -> bool:
        return True if v is None else bool(v)

    @field_validator("eligibility", mode="before")
    @classmethod
    def _eligibility(cls, v: Any) -> Any:
        # Unrecognised values place no gender restriction
        values = {e.value for e in LeaveEligibility}
        return v if v in values or isinstance(v, LeaveEligibility) else LeaveEligibility.all

    @field_validator("accrual_mode", mode="before")
    @classmethod
    def _accrual(cls, v: Any) -> Any:
        return v if v == AccrualMode.business_days else AccrualMode.calendar_days

    @field_validator("annual_days", "min_tenure_months", "notice_days", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return _non_negative_int(v)


# ═════════════════════════════════════════════════════════════════════
# Requester / leave type
# ═════════════════════════════════════════════════════════════════════


class RequesterProfile(BaseModel):
    """Snapshot of the employee making a request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    gender: Optional[str] = None
    employment_date: Optional[date] = None
    employment_type: Optional[str] = None
    marital_status: Optional[str] = None
    has_children: Optional[bool] = None
    pregnancy_status: Optional[str] = None


class LeaveTypeBrief(BaseModel):
    """Leave type fields used for messaging."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None
    code: Optional[str] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.code or "this leave type"


# ═════════════════════════════════════════════════════════════════════
# Eligibility / dates
# ═════════════════════════════════════════════════════════════════════


class EligibilityResult(BaseModel):
    status: EligibilityStatus
    reason: Optional[str] = None
    required_documents: list[str] = Field(default_factory=list)
    missing_documents: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_invariants(self) -> EligibilityResult:
        if self.status == EligibilityStatus.not_eligible:
            if not self.reason or self.missing_documents:
                raise ValueError("not_eligible requires a reason and no missing documents")
        elif self.status == EligibilityStatus.missing_evidence:
            if not self.missing_documents:
                raise ValueError("missing_evidence requires missing documents")
            if not set(self.missing_documents) <= set(self.required_documents):
                raise ValueError("missing documents must be a subset of required documents")
        elif self.missing_documents:
            raise ValueError("eligible results carry no missing documents")
        return self


class LeaveDates(BaseModel):
    end_date: date
    resume_date: date


class EvidenceCheck(BaseModel):
    complete: bool
    missing: list[str] = Field(default_factory=list)


class LeavePreflight(BaseModel):
    """Everything the request API needs to create a leave request."""

    policy: LeavePolicyRecord
    eligibility: EligibilityResult
    dates: LeaveDates
    initial_status: LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Request bodies
# ═════════════════════════════════════════════════════════════════════


class EligibilityCheckRequest(BaseModel):
    leave_type_id: uuid.UUID
    start_date: date
    days_count: int = Field(gt=0, le=MAX_LEAVE_DAYS)
    reliever_id: Optional[uuid.UUID] = None
    exclude_request_id: Optional[uuid.UUID] = None


class LeaveSubmitRequest(BaseModel):
    leave_type_id: uuid.UUID
    start_date: date
    days_count: int = Field(gt=0, le=MAX_LEAVE_DAYS)
    reason: Optional[str] = Field(None, max_length=2000)
    reliever: Optional[str] = Field(
        None, description="Reliever id, company email or full name",
    )


class LeaveDatesRequest(BaseModel):
    start_date: date
    days_count: int = Field(gt=0, le=MAX_LEAVE_DAYS)
    accrual_mode: AccrualMode = AccrualMode.calendar_days
    location: Optional[str] = None


class LeaveDecisionRequest(BaseModel):
    action: ApprovalAction
    comments: Optional[str] = Field(None, max_length=2000)


class LeaveCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveExtensionRequest(BaseModel):
    extension_days: int = Field(gt=0, le=MAX_LEAVE_DAYS)
    reason: Optional[str] = Field(None, max_length=2000)


class EarlyReturnRequest(BaseModel):
    return_date: date
    reason: Optional[str] = Field(None, max_length=2000)


class EvidenceUploadRequest(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=50)
    file_url: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class EvidenceVerifyRequest(BaseModel):
    status: EvidenceStatus
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def _decided(cls, v: EvidenceStatus) -> EvidenceStatus:
        if v == EvidenceStatus.pending:
            raise ValueError("status must be 'verified' or 'rejected'")
        return v


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class LeaveApprovalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    leave_request_id: uuid.UUID
    approver_id: uuid.UUID
    approval_level: int
    status: ApprovalAction
    comments: Optional[str] = None
    approved_at: datetime


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    resume_date: Optional[date] = None
    days_count: int
    status: str
    approval_stage: Optional[str] = None
    reliever_id: Optional[uuid.UUID] = None
    supervisor_id: Optional[uuid.UUID] = None
    reason: Optional[str] = None
    requested_days_mode: Optional[str] = None
    request_kind: str = "standard"
    original_request_id: Optional[uuid.UUID] = None
    rejected_reason: Optional[str] = None
    hr_comment: Optional[str] = None


class LeaveEvidenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    leave_request_id: uuid.UUID
    document_type: str
    file_url: Optional[str] = None
    status: EvidenceStatus
    notes: Optional[str] = None
    verified_by: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None


class LeaveRequestDetailOut(LeaveRequestOut):
    """A request with its approval trail and uploaded evidence."""

    approvals: list[LeaveApprovalOut] = Field(default_factory=list)
    evidence: list[LeaveEvidenceOut] = Field(default_factory=list)


class LeaveBalanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int
    allocated_days: int
    used_days: int
    balance_days: int


# ═════════════════════════════════════════════════════════════════════
# Policy simulation
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: Optional[str] = None
    company_email: Optional[str] = None


class PolicySimulationItem(BaseModel):
    """How one leave type's policy treats the employee for a sample request."""

    leave_type: LeaveTypeBrief
    policy: LeavePolicyRecord
    eligibility_status: EligibilityStatus
    eligibility_reason: Optional[str] = None
    required_documents: list[str] = Field(default_factory=list)
    missing_documents: list[str] = Field(default_factory=list)


class PolicySimulationOut(BaseModel):
    employee: EmployeeBrief
    data: list[PolicySimulationItem]
