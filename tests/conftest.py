"""Shared test fixtures — async DB, client, token helpers, record factory.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import LeaveSession, LeaveStatus, LeaveType, UserRole
from leave_portal.config import settings
from leave_portal.database import Base, get_db
from leave_portal.main import create_app

# Import model modules so every table is registered on Base.metadata
import leave_portal.common.audit  # noqa: F401
import leave_portal.leave.models  # noqa: F401
from leave_portal.leave.models import LeaveRecord

TEST_DATABASE_URL = "sqlite+aiosqlite://"

TZ = ZoneInfo(settings.TIMEZONE)

# Monday 2 March 2026, 08:00 local, before every same-day cutoff.
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=TZ)
TODAY = NOW.date()


def at(hour: int, minute: int = 0, day: date = TODAY) -> datetime:
    """Local wall-clock datetime on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ)


# ── Test database (SQLite in-memory) ────────────────────────────────

@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_portal.common.rate_limit import limiter

    limiter.reset()
    yield


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.commit()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(session_factory):
    """Create a fresh app instance with DB dependency overridden."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

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


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the service clock to ``NOW`` (or a datetime passed to the returned setter)."""
    import leave_portal.leave.service as service_module

    def _freeze(moment: datetime = NOW) -> datetime:
        monkeypatch.setattr(service_module, "local_now", lambda: moment)
        return moment

    _freeze()
    return _freeze


# ── Actors ──────────────────────────────────────────────────────────

def make_actor(
    user_id: str = "staff-1",
    role: UserRole = UserRole.staff,
    department: Optional[str] = "Computer Science",
    email: Optional[str] = None,
) -> Actor:
    return Actor(
        user_id=user_id,
        role=role,
        department=department,
        email=email or f"{user_id}@college.edu",
    )


STAFF = make_actor()
STAFF_2 = make_actor("staff-2")
HOD = make_actor("hod-1", UserRole.hod)
OTHER_HOD = make_actor("hod-2", UserRole.hod, department="Mechanical")
PRINCIPAL = make_actor("principal-1", UserRole.principal, department=None)
DIRECTOR = make_actor("director-1", UserRole.director, department=None)
ADMIN = make_actor("admin-1", UserRole.admin, department=None)


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    actor: Actor,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token the way the directory service would."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": actor.user_id,
        "role": actor.role.value,
        "department": actor.department,
        "email": actor.email,
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor)}"}


# ── Model factories ─────────────────────────────────────────────────

def _make_record(
    *,
    user_id: str = "staff-1",
    department: Optional[str] = "Computer Science",
    leave_type: str = LeaveType.casual.value,
    from_date: date = TODAY + timedelta(days=7),
    to_date: Optional[date] = None,
    session: LeaveSession = LeaveSession.full_day,
    leave_value: Optional[Decimal] = None,
    status: LeaveStatus = LeaveStatus.pending,
    recommended_by: Optional[str] = None,
    reason: str = "Personal work",
) -> LeaveRecord:
    to_date = to_date or from_date
    if leave_value is None:
        leave_value = (
            Decimal("0.5")
            if session != LeaveSession.full_day
            else Decimal((to_date - from_date).days + 1)
        )
    now = datetime.now(timezone.utc)
    return LeaveRecord(
        id=uuid.uuid4(),
        user_id=user_id,
        user_email=f"{user_id}@college.edu",
        department=department,
        type=leave_type,
        from_date=from_date,
        to_date=to_date,
        session=session,
        leave_value=leave_value,
        status=status,
        recommended_by=recommended_by,
        reason=reason,
        created_at=now,
        updated_at=now,
    )


async def seed_record(db: AsyncSession, **kwargs) -> LeaveRecord:
    record = _make_record(**kwargs)
    db.add(record)
    await db.flush()
    return record
