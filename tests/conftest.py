"""Shared test fixtures — async DB, client, seed factories, recording mailer.

Reusable across all test modules (policy, eligibility, calendar, workflow,
API, etc.). Uses SQLite + aiosqlite for fast isolated tests without
PostgreSQL.
"""

from __future__ import annotations

import os

# Outbound email stays off unless a test passes its own mailer
os.environ["RESEND_API_KEY"] = ""

import uuid
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_workflow.common.constants import (
    AccrualMode,
    ApprovalStage,
    LeaveEligibility,
    LeaveStatus,
)
from leave_workflow.database import Base, get_db
from leave_workflow.main import create_app
from leave_workflow.notifications.mailer import LeaveWorkflowEmail

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leave_workflow.attendance.models  # noqa: F401
import leave_workflow.core_hr.models  # noqa: F401
import leave_workflow.leave.models  # noqa: F401
import leave_workflow.notifications.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

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
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
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
    from leave_workflow.common.rate_limit import limiter

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


# ── Recording mailer ────────────────────────────────────────────────

class RecordingMailer:
    """Stands in for the Resend sender; keeps every payload it is given."""

    def __init__(self) -> None:
        self.sent: list[LeaveWorkflowEmail] = []

    async def __call__(self, payload: LeaveWorkflowEmail) -> None:
        self.sent.append(payload)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


# ── Model factories ─────────────────────────────────────────────────

def _make_profile(
    *,
    full_name: str = "Test Employee",
    company_email: Optional[str] = None,
    department_id: Optional[uuid.UUID] = None,
    role: str = "employee",
    gender: Optional[str] = "female",
    employment_date: Optional[date] = date(2022, 1, 10),
    **overrides,
) -> dict:
    profile_id = uuid.uuid4()
    data = dict(
        id=profile_id,
        full_name=full_name,
        company_email=company_email or f"user.{profile_id.hex[:8]}@acoblighting.com",
        department_id=department_id,
        is_department_lead=False,
        role=role,
        location="global",
        gender=gender,
        employment_date=employment_date,
        employment_type="full_time",
        marital_status="single",
        has_children=False,
        pregnancy_status=None,
        created_at=datetime.now(timezone.utc),
    )
    data.update(overrides)
    return data


async def _seed_profile(db: AsyncSession, **kwargs):
    from leave_workflow.core_hr.models import Profile

    profile = Profile(**_make_profile(**kwargs))
    db.add(profile)
    await db.flush()
    return profile


async def _seed_leave_type(
    db: AsyncSession,
    *,
    code: str = "ANL",
    name: str = "Annual Leave",
    max_days: int = 20,
):
    from leave_workflow.leave.models import LeaveType

    leave_type = LeaveType(
        id=uuid.uuid4(),
        code=code,
        name=name,
        max_days=max_days,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(leave_type)
    await db.flush()
    return leave_type


async def _seed_policy(
    db: AsyncSession,
    leave_type_id: uuid.UUID,
    *,
    annual_days: int = 20,
    eligibility: LeaveEligibility = LeaveEligibility.all,
    min_tenure_months: int = 0,
    notice_days: int = 0,
    accrual_mode: AccrualMode = AccrualMode.calendar_days,
    is_active: bool = True,
    eligibility_conditions: Optional[dict] = None,
    required_documents: Optional[list] = None,
    frequency_rules: Optional[dict] = None,
    override_allowed: Optional[bool] = True,
):
    from leave_workflow.leave.models import LeavePolicy

    policy = LeavePolicy(
        id=uuid.uuid4(),
        leave_type_id=leave_type_id,
        annual_days=annual_days,
        eligibility=eligibility.value,
        min_tenure_months=min_tenure_months,
        notice_days=notice_days,
        accrual_mode=accrual_mode.value,
        is_active=is_active,
        eligibility_conditions=eligibility_conditions or {},
        required_documents=required_documents or [],
        frequency_rules=frequency_rules or {},
        override_allowed=override_allowed,
    )
    db.add(policy)
    await db.flush()
    return policy


async def _seed_request(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    start_date: date,
    end_date: date,
    status: LeaveStatus = LeaveStatus.pending,
    approval_stage: Optional[str] = ApprovalStage.reliever_pending.value,
    reliever_id: Optional[uuid.UUID] = None,
    supervisor_id: Optional[uuid.UUID] = None,
):
    from leave_workflow.leave.models import LeaveRequest

    leave_request = LeaveRequest(
        id=uuid.uuid4(),
        user_id=user_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        resume_date=None,
        days_count=(end_date - start_date).days + 1,
        status=status.value,
        approval_stage=approval_stage,
        reliever_id=reliever_id,
        supervisor_id=supervisor_id,
    )
    db.add(leave_request)
    await db.flush()
    return leave_request


async def _seed_holiday(
    db: AsyncSession,
    holiday_date: date,
    *,
    location: str = "global",
    name: str = "Public Holiday",
    is_business_day: bool = False,
):
    from leave_workflow.attendance.models import HolidayCalendarEntry

    entry = HolidayCalendarEntry(
        location=location,
        holiday_date=holiday_date,
        name=name,
        is_business_day=is_business_day,
    )
    db.add(entry)
    await db.flush()
    return entry


async def _seed_life_event(
    db: AsyncSession,
    employee_id: uuid.UUID,
    event_type: str,
    event_date: date,
):
    from leave_workflow.core_hr.models import EmployeeLifeEvent

    life_event = EmployeeLifeEvent(
        employee_id=employee_id,
        event_type=event_type,
        event_date=event_date,
    )
    db.add(life_event)
    await db.flush()
    return life_event


async def _seed_balance(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    allocated_days: int = 20,
    used_days: int = 0,
):
    from leave_workflow.leave.models import LeaveBalance

    balance = LeaveBalance(
        user_id=user_id,
        leave_type_id=leave_type_id,
        year=year,
        allocated_days=allocated_days,
        used_days=used_days,
    )
    db.add(balance)
    await db.flush()
    return balance


def actor_headers(actor_id: uuid.UUID) -> dict[str, str]:
    """Headers carrying the acting user, as forwarded by the gateway."""
    return {"X-Actor-Id": str(actor_id)}
