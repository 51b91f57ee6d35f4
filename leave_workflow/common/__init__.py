"""Common module — shared utilities for the leave workflow."""

from leave_workflow.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DATE_FORMAT,
    MAX_LEAVE_DAYS,
    AccrualMode,
    ApprovalAction,
    ApprovalStage,
    AttendanceStatus,
    AttendanceSyncMode,
    ClosedStage,
    DocumentType,
    EligibilityStatus,
    EvidenceStatus,
    LeaveEligibility,
    LeaveStatus,
    LifeEventType,
    RequestKind,
)
from leave_workflow.common.dates import (
    add_days,
    diff_months,
    is_business_day,
    is_valid_uuid,
    is_weekend,
    iter_days,
    parse_iso_date,
    to_iso_date,
    utc_today,
)
from leave_workflow.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    StoreException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "AccrualMode",
    "ApprovalAction",
    "ApprovalStage",
    "AttendanceStatus",
    "AttendanceSyncMode",
    "ClosedStage",
    "DocumentType",
    "EligibilityStatus",
    "EvidenceStatus",
    "LeaveEligibility",
    "LeaveStatus",
    "LifeEventType",
    "RequestKind",
    "ACTIVE_LEAVE_STATUSES",
    "DATE_FORMAT",
    "MAX_LEAVE_DAYS",
    # Dates
    "add_days",
    "diff_months",
    "is_business_day",
    "is_valid_uuid",
    "is_weekend",
    "iter_days",
    "parse_iso_date",
    "to_iso_date",
    "utc_today",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "NotFoundException",
    "StoreException",
    "ValidationException",
    "register_exception_handlers",
]
