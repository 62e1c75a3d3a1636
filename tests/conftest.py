"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, leave, dashboard, common).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from backend.common.constants import LeaveStatus, LeaveType, UserRole
from backend.config import settings
from backend.database import Base, get_db
from backend.leave.schemas import LeaveRecord
from backend.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import backend.auth.models  # noqa: F401
import backend.leave.models  # noqa: F401
import backend.common.audit  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/BLOB ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from backend.common.rate_limit import limiter
    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_profile(
    *,
    full_name: Optional[str] = "Test User",
    email: str = "test.user@example.com",
    role: UserRole = UserRole.employee,
    user_id: Optional[uuid.UUID] = None,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        full_name=full_name,
        email=email,
        role=role,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_leave_request(
    *,
    employee_id: uuid.UUID,
    leave_type: str = LeaveType.annual.value,
    start_date: date = date(2024, 3, 4),
    end_date: date = date(2024, 3, 6),
    status: LeaveStatus = LeaveStatus.pending,
    days_requested: Optional[int] = 3,
    reason: Optional[str] = "Family trip",
    created_at: Optional[datetime] = None,
) -> dict:
    created = created_at or datetime.now(timezone.utc)
    return dict(
        id=uuid.uuid4(),
        employee_id=employee_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        status=status,
        days_requested=days_requested,
        created_at=created,
        updated_at=created,
    )


def _make_record(
    *,
    employee_name: str = "Alice",
    employee_id: Optional[uuid.UUID] = None,
    leave_type: str = LeaveType.annual.value,
    start_date: date = date(2024, 3, 4),
    end_date: date = date(2024, 3, 6),
    status: LeaveStatus = LeaveStatus.approved,
    days_requested: int = 3,
) -> LeaveRecord:
    """In-memory LeaveRecord for pure service tests (no DB)."""
    return LeaveRecord(
        id=uuid.uuid4(),
        employee_id=employee_id or uuid.uuid4(),
        employee_name=employee_name,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        status=status,
        days_requested=days_requested,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
async def test_employee(db) -> dict:
    """Insert an employee profile and return its data dict."""
    from backend.auth.models import Profile

    data = _make_profile(full_name="Alice Employee", email="alice@example.com")
    db.add(Profile(**data))
    await db.commit()
    return data


@pytest.fixture
async def test_admin(db) -> dict:
    """Insert an admin profile and return its data dict."""
    from backend.auth.models import Profile

    data = _make_profile(
        full_name="Dana Admin", email="dana@example.com", role=UserRole.admin,
    )
    db.add(Profile(**data))
    await db.commit()
    return data


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def auth_headers(test_employee) -> dict[str, str]:
    """Bearer headers for the employee profile."""
    token = create_access_token(test_employee["user_id"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(test_admin) -> dict[str, str]:
    """Bearer headers for the admin profile."""
    token = create_access_token(test_admin["user_id"])
    return {"Authorization": f"Bearer {token}"}
