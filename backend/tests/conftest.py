"""
Dominion Ops - Test Fixtures
============================

Shared pytest fixtures for all tests.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dominion.api.deps import get_session_factory
from dominion.api.main import app
from dominion.core.database import Base, create_session_factory
from dominion.core.models import Mission, MissionProposal, MissionStep, ProposalStatus
from dominion.core.proposals import ProposalLifecycleEngine, StaticPolicyStore
from dominion.core.schemas import (
    AutoApprovalPolicy,
    DailyQuota,
    ProposalSubmission,
    StepTemplate,
)


# ==========================================================================
# Test Database Setup
# ==========================================================================

# Use in-memory SQLite for tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2026-03-10 12:00 UTC, mid-day so the day window is unambiguous
FROZEN_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ==========================================================================
# Database Fixtures
# ==========================================================================

@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Provide a session factory over a clean in-memory database.

    Creates all tables before test, drops after.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding rows; commit before calling the engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide test HTTP client with session factory override.
    """
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ==========================================================================
# Policy / Engine Fixtures
# ==========================================================================

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def quota() -> DailyQuota:
    """Generous quota for agent-1."""
    return DailyQuota(max_proposals=10, max_cost=Decimal("10.00"))


@pytest.fixture
def auto_policy() -> AutoApprovalPolicy:
    """Auto-approve cheap, low-risk work; deploy always needs a human."""
    return AutoApprovalPolicy(
        enabled=True,
        max_auto_approve_cost=Decimal("1.00"),
        require_approval_kinds=["deploy"],
        low_risk_threshold=2.0,
    )


@pytest.fixture
def policy_store(quota: DailyQuota, auto_policy: AutoApprovalPolicy) -> StaticPolicyStore:
    return StaticPolicyStore(daily_quotas={"agent-1": quota}, auto_approve=auto_policy)


@pytest.fixture
def engine(
    session_factory: async_sessionmaker[AsyncSession],
    policy_store: StaticPolicyStore,
    clock: FrozenClock,
) -> ProposalLifecycleEngine:
    return ProposalLifecycleEngine(session_factory, policy_store, clock=clock)


# ==========================================================================
# Helper Functions
# ==========================================================================

def make_submission(
    kinds: tuple[str, ...] = ("draft_tweet", "write_content"),
    agent_id: Optional[str] = "agent-1",
    title: str = "Weekly content push",
    description: str = "Draft and polish this week's posts",
    priority: int = 50,
    **overrides: Any,
) -> ProposalSubmission:
    """Build a valid submission with one step per kind."""
    fields: dict[str, Any] = dict(
        agent_id=agent_id,
        title=title,
        description=description,
        priority=priority,
        proposed_steps=[
            StepTemplate(kind=kind, title=f"Step {kind}", input_data={"n": i})
            for i, kind in enumerate(kinds, start=1)
        ],
    )
    fields.update(overrides)
    return ProposalSubmission(**fields)


async def seed_proposal(
    session: AsyncSession,
    created_at: datetime,
    agent_id: str = "agent-1",
    cost: str = "0.50",
    status: ProposalStatus = ProposalStatus.PENDING,
    priority: int = 50,
    auto_approved: bool = False,
    kinds: tuple[str, ...] = ("draft_tweet",),
    ttl: timedelta = timedelta(hours=24),
) -> MissionProposal:
    """Insert a proposal row directly, bypassing the gates."""
    proposal = MissionProposal(
        id=uuid4(),
        agent_id=agent_id,
        title="Seeded proposal",
        description="Seeded directly for the test",
        priority=priority,
        estimated_cost_usd=Decimal(cost),
        proposed_steps=[{"kind": k, "title": f"Step {k}"} for k in kinds],
        status=status,
        auto_approved=auto_approved,
        created_at=created_at,
        expires_at=created_at + ttl,
    )
    session.add(proposal)
    await session.commit()
    return proposal


async def seed_mission_steps(
    session: AsyncSession,
    created_at: datetime,
    kind: str,
    count: int,
    agent_id: str = "agent-1",
) -> Mission:
    """Insert a mission holding `count` steps of one kind."""
    mission = Mission(
        id=uuid4(),
        agent_id=agent_id,
        title="Seeded mission",
        description="Seeded directly for the test",
        priority=50,
        estimated_cost_usd=Decimal("0"),
        created_at=created_at,
        started_at=created_at,
    )
    session.add(mission)
    await session.flush()
    session.add_all([
        MissionStep(
            id=uuid4(),
            mission_id=mission.id,
            agent_id=agent_id,
            step_order=i,
            kind=kind,
            title=f"{kind} #{i}",
            created_at=created_at,
        )
        for i in range(1, count + 1)
    ])
    await session.commit()
    return mission
