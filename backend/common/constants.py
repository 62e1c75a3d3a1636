"""Enums and constants for Leave Desk — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    admin = "admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class LeaveType(str, enum.Enum):
    annual = "annual_leave"
    sick = "sick_leave"
    personal = "personal_leave"
    maternity = "maternity_leave"
    paternity = "paternity_leave"
    other = "other"


class TransitionOutcome(str, enum.Enum):
    applied = "applied"
    not_found = "not_found"
    invalid_transition = "invalid_transition"


# Statuses an administrator may move a pending request to
TRANSITION_TARGETS: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected}
)

UNKNOWN_EMPLOYEE = "Unknown Employee"


# ── Calendar palette ────────────────────────────────────────────────

LEAVE_TYPE_PALETTE: dict[str, str] = {
    LeaveType.annual.value: "primary",
    LeaveType.sick.value: "destructive",
    LeaveType.personal.value: "warning",
    LeaveType.maternity.value: "accent",
    LeaveType.paternity.value: "secondary",
}

# Bucket for "other" and any leave type added after this release
UNKNOWN_LEAVE_TYPE_COLOR = "muted"

LEAVE_TYPE_LABELS: dict[str, str] = {
    LeaveType.annual.value: "Annual Leave",
    LeaveType.sick.value: "Sick Leave",
    LeaveType.personal.value: "Personal Leave",
    LeaveType.maternity.value: "Maternity Leave",
    LeaveType.paternity.value: "Paternity Leave",
    LeaveType.other.value: "Other",
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read_own",
        "leave:request",
        "leave:read_own",
        "calendar:read",
    ],
    UserRole.admin: [
        "profile:read_own",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "calendar:read",
        "dashboard:admin",
    ],
}
