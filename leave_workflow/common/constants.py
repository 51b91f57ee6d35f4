"""Enums and constants for the leave workflow — matching the database string values."""

from __future__ import annotations

import enum


# ── Leave policy ────────────────────────────────────────────────────

class LeaveEligibility(str, enum.Enum):
    all = "all"
    female_only = "female_only"
    male_only = "male_only"


class AccrualMode(str, enum.Enum):
    calendar_days = "calendar_days"
    business_days = "business_days"


class EligibilityStatus(str, enum.Enum):
    eligible = "eligible"
    not_eligible = "not_eligible"
    missing_evidence = "missing_evidence"


# ── Leave requests ──────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    pending_evidence = "pending_evidence"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class ApprovalStage(str, enum.Enum):
    """Pending stages of the sign-off chain, in order."""

    reliever_pending = "reliever_pending"
    supervisor_pending = "supervisor_pending"
    hr_pending = "hr_pending"

    @property
    def level(self) -> int:
        return APPROVAL_LEVELS[self]

    @property
    def next_stage(self) -> ApprovalStage | None:
        order = list(ApprovalStage)
        index = order.index(self)
        return order[index + 1] if index + 1 < len(order) else None


class ClosedStage(str, enum.Enum):
    """Terminal values stored in ``leave_requests.approval_stage``."""

    completed = "completed"
    rejected = "rejected"
    cancelled = "cancelled"


class ApprovalAction(str, enum.Enum):
    approved = "approved"
    rejected = "rejected"


class RequestKind(str, enum.Enum):
    standard = "standard"
    extension = "extension"


# Statuses that block the same dates for another request
ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.pending,
    LeaveStatus.pending_evidence,
    LeaveStatus.approved,
)

APPROVAL_LEVELS: dict[ApprovalStage, int] = {
    ApprovalStage.reliever_pending: 1,
    ApprovalStage.supervisor_pending: 2,
    ApprovalStage.hr_pending: 3,
}


# ── Evidence ────────────────────────────────────────────────────────

class LifeEventType(str, enum.Enum):
    pregnancy = "pregnancy"
    childbirth = "childbirth"
    adoption = "adoption"
    bereavement = "bereavement"


class EvidenceStatus(str, enum.Enum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


class DocumentType(str, enum.Enum):
    medical_confirmation = "medical_confirmation"
    birth_or_adoption_proof = "birth_or_adoption_proof"
    bereavement_declaration = "bereavement_declaration"
    admission_or_exam_letter = "admission_or_exam_letter"
    medical_certificate = "medical_certificate"


PREGNANCY_PROFILE_STATUSES = frozenset({"pregnant", "postpartum"})


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    absent = "absent"
    half_day = "half_day"
    on_leave = "on_leave"
    work_from_home = "work_from_home"


class AttendanceSyncMode(str, enum.Enum):
    set = "set"
    clear = "clear"


LEAVE_ATTENDANCE_NOTE = "Auto-generated from approved leave"


# ── Notifications ───────────────────────────────────────────────────

NOTIFICATION_TYPE_APPROVAL_REQUEST = "approval_request"
NOTIFICATION_CATEGORY_APPROVALS = "approvals"
NOTIFICATION_PRIORITY_HIGH = "high"
NOTIFICATION_ENTITY_LEAVE_REQUEST = "leave_request"
DEFAULT_LEAVE_LINK = "/dashboard/leave"


DATE_FORMAT = "%Y-%m-%d"

# Longest leave a single request may span, in counted days
MAX_LEAVE_DAYS = 366
