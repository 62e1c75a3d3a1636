"""Auth service — JWT helpers and profile / role resolution.

Sign-in itself happens at the external identity provider; this module only
issues and verifies the bearer tokens the API accepts and maps a token
subject onto its Profile.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.models import Profile
from backend.common.constants import UserRole
from backend.config import settings


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    *,
    expires_in_hours: Optional[int] = None,
) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds) for the given user."""
    hours = settings.JWT_EXPIRY_HOURS if expires_in_hours is None else expires_in_hours
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(hours=hours),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, hours * 3600


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a bearer token. Raises jose errors on failure."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
    )


# ── Profiles ────────────────────────────────────────────────────────

async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Optional[Profile]:
    """Return the profile for an identity-provider user id, if any."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalars().first()


def resolve_role(profile: Optional[Profile]) -> UserRole:
    """Only an explicit admin profile grants admin; everything else is employee."""
    if profile is not None and profile.role == UserRole.admin:
        return UserRole.admin
    return UserRole.employee
