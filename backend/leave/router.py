"""Leave router — apply, own requests and balance, admin review.

All endpoints require authentication. Listing every request and the
approve / reject actions are admin-only.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.dependencies import get_current_user, require_role
from backend.auth.models import Profile
from backend.common.constants import LeaveStatus, UserRole
from backend.common.rate_limit import limiter
from backend.config import settings
from backend.dashboard.board import LeaveBoard
from backend.database import get_db
from backend.leave.schemas import (
    LeaveBalanceOut,
    LeaveRecord,
    LeaveRequestCreate,
    LeaveRequestsResponse,
    StatusTransitionResult,
)
from backend.leave.service import LeaveService
from backend.leave.store import LeaveRecordStore

router = APIRouter(prefix="", tags=["leave"])


async def _transition(
    db: AsyncSession,
    request_id: uuid.UUID,
    new_status: LeaveStatus,
    reviewer: Profile,
) -> StatusTransitionResult:
    # The result carries every record and stats over all of them, so the
    # full set is loaded even though only one row changes.
    board = LeaveBoard(LeaveRecordStore(db))
    await board.refresh()
    return await board.apply_status_transition(
        request_id, new_status, reviewer_id=reviewer.user_id,
    )


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveRecord, status_code=201)
@limiter.limit(settings.RATE_LIMIT_APPLY)
async def apply_leave(
    request: Request,
    body: LeaveRequestCreate,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. The new request starts as pending."""
    return await LeaveService.apply_leave(LeaveRecordStore(db), profile.user_id, body)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=list[LeaveRecord])
async def my_leaves(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's own leave requests, newest first."""
    return await LeaveRecordStore(db).list_leave_records_for_employee(profile.user_id)


# ── GET /balance ────────────────────────────────────────────────────

@router.get("/balance", response_model=Optional[LeaveBalanceOut])
async def my_balance(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's remaining annual / sick / personal days, or null."""
    return await LeaveRecordStore(db).get_leave_balance(profile.user_id)


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=LeaveRequestsResponse)
async def all_requests(
    status: str = Query("all", pattern="^(all|pending|approved|rejected)$"),
    profile: Profile = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Every leave request, optionally filtered by status, with overall stats."""
    status_filter = None if status == "all" else LeaveStatus(status)
    return await LeaveService.get_leave_requests(LeaveRecordStore(db), status=status_filter)


# ── PUT /{id}/approve ───────────────────────────────────────────────

@router.put("/{request_id}/approve", response_model=StatusTransitionResult)
async def approve_leave(
    request_id: uuid.UUID,
    profile: Profile = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending leave request. Non-pending or unknown ids are no-ops."""
    return await _transition(db, request_id, LeaveStatus.approved, profile)


# ── PUT /{id}/reject ────────────────────────────────────────────────

@router.put("/{request_id}/reject", response_model=StatusTransitionResult)
async def reject_leave(
    request_id: uuid.UUID,
    profile: Profile = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending leave request. Non-pending or unknown ids are no-ops."""
    return await _transition(db, request_id, LeaveStatus.rejected, profile)
