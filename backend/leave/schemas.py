"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create            → request bodies (write)
  - *Out / *Response   → response bodies (read)
  - LeaveRecord        → the joined read model every view works from
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.common.constants import (
    UNKNOWN_EMPLOYEE,
    LeaveStatus,
    LeaveType,
    TransitionOutcome,
)


# ═════════════════════════════════════════════════════════════════════
# Leave Record (read model)
# ═════════════════════════════════════════════════════════════════════


class LeaveRecord(BaseModel):
    """A leave request joined with its employee's display name.

    ``leave_type`` stays a plain string so codes unknown to this release
    still round-trip; ``reason`` and ``days_requested`` are normalised to
    ``""`` and ``0`` when the stored row has none.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str = UNKNOWN_EMPLOYEE
    leave_type: str
    start_date: date
    end_date: date
    reason: str = ""
    status: LeaveStatus
    days_requested: int = 0
    created_at: datetime
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        """True when ``day`` falls inside the inclusive date range."""
        return self.start_date <= day <= self.end_date


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying for leave."""

    leave_type: LeaveType
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)
    days_requested: int = Field(
        ..., ge=0, description="Days charged for this request, as entered"
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Remaining days per leave bucket for one employee."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    annual_leave: int = 0
    sick_leave: int = 0
    personal_leave: int = 0


# ═════════════════════════════════════════════════════════════════════
# Stats / Transitions
# ═════════════════════════════════════════════════════════════════════


class DashboardStats(BaseModel):
    """Request counts by status."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class StatusTransitionResult(BaseModel):
    """Outcome of an approve / reject action on the in-memory record set."""

    records: list[LeaveRecord]
    stats: DashboardStats
    applied: bool
    outcome: TransitionOutcome
    request_id: uuid.UUID
    status: LeaveStatus


class LeaveRequestsResponse(BaseModel):
    """Admin list: filtered records plus stats over the whole set."""

    data: list[LeaveRecord]
    stats: DashboardStats
    status_filter: str = "all"
