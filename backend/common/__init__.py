"""Common module — shared utilities for Leave Desk."""

from backend.common.audit import AuditTrail, create_audit_entry, record_leave_transition
from backend.common.constants import (
    LEAVE_TYPE_LABELS,
    LEAVE_TYPE_PALETTE,
    MONTH_NAMES,
    PERMISSIONS,
    TRANSITION_TARGETS,
    UNKNOWN_EMPLOYEE,
    UNKNOWN_LEAVE_TYPE_COLOR,
    LeaveStatus,
    LeaveType,
    TransitionOutcome,
    UserRole,
)
from backend.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    StoreUnavailableException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "record_leave_transition",
    # Constants / Enums
    "LeaveStatus",
    "LeaveType",
    "TransitionOutcome",
    "UserRole",
    "PERMISSIONS",
    "TRANSITION_TARGETS",
    "LEAVE_TYPE_LABELS",
    "LEAVE_TYPE_PALETTE",
    "UNKNOWN_EMPLOYEE",
    "UNKNOWN_LEAVE_TYPE_COLOR",
    "MONTH_NAMES",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "NotFoundException",
    "StoreUnavailableException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
]
