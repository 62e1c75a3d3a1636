"""Dashboard router — admin and employee dashboards, approved-leave calendar.

All endpoints require authentication. The admin dashboard is admin-only;
the calendar is visible to every role.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.dependencies import get_current_user, require_permission, require_role
from backend.auth.models import Profile
from backend.common.constants import UserRole
from backend.dashboard.board import LeaveBoard
from backend.dashboard.schemas import (
    AdminDashboardResponse,
    EmployeeDashboardResponse,
    LeaveCalendarResponse,
)
from backend.dashboard.service import DashboardService
from backend.database import get_db
from backend.leave.store import LeaveRecordStore

router = APIRouter()


# ── GET /admin ──────────────────────────────────────────────────────

@router.get("/admin", response_model=AdminDashboardResponse)
async def admin_dashboard(
    profile: Profile = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Every leave request, newest first, with counts by status."""
    board = LeaveBoard(LeaveRecordStore(db))
    await board.refresh()
    return AdminDashboardResponse(records=board.records, stats=board.stats)


# ── GET /employee ───────────────────────────────────────────────────

@router.get("/employee", response_model=EmployeeDashboardResponse)
async def employee_dashboard(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's own requests, counts, and remaining balance."""
    store = LeaveRecordStore(db)
    board = LeaveBoard(store, employee_id=profile.user_id)
    await board.refresh()
    balance = await store.get_leave_balance(profile.user_id)
    return EmployeeDashboardResponse(
        records=board.records, stats=board.stats, balance=balance,
    )


# ── GET /calendar ───────────────────────────────────────────────────

@router.get("/calendar", response_model=LeaveCalendarResponse)
async def leave_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999, description="Defaults to the current year"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Defaults to the current month"),
    step: int = Query(0, ge=-1, le=1, description="-1 previous month, 1 next month"),
    profile: Profile = Depends(require_permission("calendar:read")),
    db: AsyncSession = Depends(get_db),
):
    """Month grid of approved leave: who is off on each day."""
    return await DashboardService.get_leave_calendar(
        LeaveRecordStore(db), year, month, step=step,
    )
