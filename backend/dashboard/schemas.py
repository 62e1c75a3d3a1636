"""Dashboard response schemas — admin / employee views and the leave calendar.

All schemas are read-only response models.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from backend.leave.schemas import DashboardStats, LeaveBalanceOut, LeaveRecord


# ═════════════════════════════════════════════════════════════════════
# Admin / Employee dashboards
# ═════════════════════════════════════════════════════════════════════


class AdminDashboardResponse(BaseModel):
    """Every leave request (newest first) with counts by status."""

    records: list[LeaveRecord] = Field(default_factory=list)
    stats: DashboardStats


class EmployeeDashboardResponse(BaseModel):
    """The caller's own requests, counts, and remaining balance."""

    records: list[LeaveRecord] = Field(default_factory=list)
    stats: DashboardStats
    balance: Optional[LeaveBalanceOut] = None


# ═════════════════════════════════════════════════════════════════════
# Leave calendar
# ═════════════════════════════════════════════════════════════════════


class MonthRef(BaseModel):
    year: int
    month: int = Field(..., ge=1, le=12)


class CalendarDay(BaseModel):
    """Approved leave records whose inclusive range covers one date."""

    day: int
    calendar_date: date
    weekday: int = Field(..., description="0 = Sunday … 6 = Saturday")
    is_today: bool = False
    records: list[LeaveRecord] = Field(default_factory=list)
    visible: list[LeaveRecord] = Field(default_factory=list, description="Leading entries shown in the cell")
    overflow: int = Field(0, description='Entries beyond the visible ones ("+N more")')


class CalendarSummary(BaseModel):
    """Month-level figures taken from the input records, not from the grid.

    ``total_days`` sums ``days_requested``; ``employees_on_leave`` counts
    distinct display names.
    """

    approved_leaves: int = 0
    total_days: int = 0
    employees_on_leave: int = 0


class LegendItem(BaseModel):
    leave_type: str
    label: str
    color: str


class LeaveCalendarResponse(BaseModel):
    """Month grid of approved leave, plus summary, legend and navigation."""

    year: int
    month: int
    month_name: str
    leading_blanks: int = Field(..., description="Empty cells before day 1 (Sunday-first)")
    days: list[CalendarDay]
    summary: CalendarSummary
    legend: list[LegendItem]
    leave_type_colors: dict[str, str] = Field(default_factory=dict)
    previous: MonthRef
    next: MonthRef
