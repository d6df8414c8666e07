"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
SQLite ignores ``SELECT … FOR UPDATE``; row locking is only exercised on
PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrms.common.constants import UserRole
from hrms.config import settings
from hrms.database import Base, get_db
from hrms.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import hrms.common.audit  # noqa: F401
import hrms.core_hr.models  # noqa: F401
import hrms.leave.models  # noqa: F401

from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveApplication, LeaveBalance, LeaveType


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
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
    from hrms.common.rate_limit import limiter

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

async def seed_employee(
    db: AsyncSession,
    *,
    id: Optional[int] = None,
    first_name: str = "Test",
    last_name: str = "User",
    email: Optional[str] = None,
    is_active: bool = True,
) -> Employee:
    code = uuid.uuid4().hex[:6].upper()
    emp = Employee(
        id=id,
        employee_code=f"EMP-{code}",
        first_name=first_name,
        last_name=last_name,
        email=email or f"{first_name.lower()}.{code.lower()}@example.com",
        is_active=is_active,
    )
    db.add(emp)
    await db.flush()
    return emp


async def seed_leave_type(
    db: AsyncSession,
    *,
    id: Optional[int] = None,
    name: str = "CL",
    max_days: int = 12,
    description: Optional[str] = None,
) -> LeaveType:
    lt = LeaveType(id=id, name=name, max_days=max_days, description=description)
    db.add(lt)
    await db.flush()
    return lt


async def seed_balance(
    db: AsyncSession,
    employee_id: int,
    leave_type_id: int,
    *,
    balance: int = 10,
) -> LeaveBalance:
    bal = LeaveBalance(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        balance=balance,
    )
    db.add(bal)
    await db.flush()
    return bal


async def seed_application(
    db: AsyncSession,
    employee_id: int,
    leave_type_id: int,
    start_date,
    end_date,
    **fields,
) -> LeaveApplication:
    """Insert an application row directly, bypassing the workflow."""
    app_row = LeaveApplication(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        **fields,
    )
    db.add(app_row)
    await db.flush()
    return app_row


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    employee_id: int,
    role: UserRole = UserRole.EMPLOYEE,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(employee_id),
        "role": role.value,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_header(employee_id: int, role: UserRole = UserRole.EMPLOYEE) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(employee_id, role)}"}
