"""Auth Pydantic schemas for response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel


# ── Responses ───────────────────────────────────────────────────────

class MeResponse(BaseModel):
    user_id: uuid.UUID
    full_name: str
    email: Optional[str] = None
    role: str
    permissions: list[str]
    is_admin: bool
