"""Auth router — current user profile and resolved role."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from backend.auth.dependencies import get_current_user
from backend.auth.models import Profile
from backend.auth.schemas import MeResponse
from backend.common.constants import PERMISSIONS, UNKNOWN_EMPLOYEE, UserRole

router = APIRouter(prefix="", tags=["auth"])


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    profile: Profile = Depends(get_current_user),
):
    """Return the caller's profile and the role the dashboards branch on."""
    role: UserRole = request.state.user_role
    return MeResponse(
        user_id=profile.user_id,
        full_name=profile.full_name or UNKNOWN_EMPLOYEE,
        email=profile.email,
        role=role.value,
        permissions=PERMISSIONS.get(role, []),
        is_admin=role == UserRole.admin,
    )
