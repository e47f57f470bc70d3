"""
Dominion Ops - Quota and Cap Gate Tests
=======================================

Usage is derived live from the proposal and step tables for the current
UTC day; these tests seed rows directly and ask the gates.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import FROZEN_NOW, seed_mission_steps, seed_proposal
from dominion.core.proposals import QuotaGate, StaticPolicyStore, StepCapGate
from dominion.core.schemas import DailyQuota, RejectionCode, StepTemplate


def steps(*kinds: str) -> list[StepTemplate]:
    return [StepTemplate(kind=k, title=f"Step {k}") for k in kinds]


@pytest.fixture
def quota_gate(session_factory, clock) -> QuotaGate:
    store = StaticPolicyStore(
        daily_quotas={"agent-1": DailyQuota(max_proposals=3, max_cost=Decimal("5.00"))},
    )
    return QuotaGate(session_factory, store, clock)


@pytest.fixture
def cap_gate(session_factory, clock) -> StepCapGate:
    return StepCapGate(session_factory, clock=clock)


class TestQuotaGate:

    async def test_allows_under_limit(self, quota_gate):
        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.60"))
        assert result.allowed
        assert result.code is None

    async def test_count_limit(self, quota_gate, db_session):
        for _ in range(3):
            await seed_proposal(db_session, FROZEN_NOW - timedelta(hours=1), cost="0.10")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.10"))

        assert not result.allowed
        assert result.code == RejectionCode.QUOTA_EXCEEDED
        assert result.reason == (
            "Daily proposal limit exceeded: 4/3 (3 already submitted today)"
        )

    async def test_one_below_count_limit_allowed(self, quota_gate, db_session):
        for _ in range(2):
            await seed_proposal(db_session, FROZEN_NOW - timedelta(hours=1), cost="0.10")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.10"))
        assert result.allowed

    async def test_rejected_and_approved_proposals_count(self, quota_gate, db_session):
        """Every proposal created today counts, whatever its status."""
        from dominion.core.models import ProposalStatus

        await seed_proposal(db_session, FROZEN_NOW, status=ProposalStatus.REJECTED)
        await seed_proposal(db_session, FROZEN_NOW, status=ProposalStatus.APPROVED)
        await seed_proposal(db_session, FROZEN_NOW)

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.10"))
        assert result.code == RejectionCode.QUOTA_EXCEEDED

    async def test_cost_limit(self, quota_gate, db_session):
        await seed_proposal(db_session, FROZEN_NOW, cost="4.50")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.60"))

        assert not result.allowed
        assert result.code == RejectionCode.QUOTA_EXCEEDED
        assert result.reason.startswith("Daily cost limit exceeded: $5.10/$5.00")

    async def test_cost_exactly_at_limit_allowed(self, quota_gate, db_session):
        await seed_proposal(db_session, FROZEN_NOW, cost="4.40")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.60"))
        assert result.allowed

    async def test_yesterday_does_not_count(self, quota_gate, db_session):
        yesterday = FROZEN_NOW - timedelta(days=1)
        for _ in range(3):
            await seed_proposal(db_session, yesterday, cost="2.00")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.60"))
        assert result.allowed

    async def test_other_agents_do_not_count(self, quota_gate, db_session):
        for _ in range(3):
            await seed_proposal(db_session, FROZEN_NOW, agent_id="agent-2")

        result = await quota_gate.check_daily_limits("agent-1", Decimal("0.10"))
        assert result.allowed

    async def test_missing_quota_fails_closed(self, quota_gate):
        result = await quota_gate.check_daily_limits("stranger", Decimal("0.10"))

        assert not result.allowed
        assert result.code == RejectionCode.POLICY_MISSING
        assert result.reason == "No daily quota configured for agent stranger"


class TestStepCapGate:

    async def test_allows_under_cap(self, cap_gate, db_session):
        await seed_mission_steps(db_session, FROZEN_NOW, "deploy", 2)

        result = await cap_gate.check_step_caps("agent-1", steps("deploy"))
        assert result.allowed

    async def test_denies_at_cap(self, cap_gate, db_session):
        await seed_mission_steps(db_session, FROZEN_NOW, "deploy", 3)

        result = await cap_gate.check_step_caps("agent-1", steps("crawl", "deploy"))

        assert not result.allowed
        assert result.code == RejectionCode.CAP_EXCEEDED
        assert result.reason == "Daily cap exceeded for deploy: 3/3"

    async def test_reports_first_offending_kind(self, cap_gate, db_session):
        await seed_mission_steps(db_session, FROZEN_NOW, "deploy", 3)
        await seed_mission_steps(db_session, FROZEN_NOW, "execute_command", 5)

        result = await cap_gate.check_step_caps(
            "agent-1", steps("execute_command", "deploy")
        )
        assert result.reason == "Daily cap exceeded for execute_command: 5/5"

    async def test_candidate_steps_do_not_count_themselves(self, cap_gate):
        """Only materialized steps count; four deploys in one proposal pass."""
        result = await cap_gate.check_step_caps("agent-1", steps(*["deploy"] * 4))
        assert result.allowed

    async def test_missions_from_yesterday_ignored(self, cap_gate, db_session):
        await seed_mission_steps(db_session, FROZEN_NOW - timedelta(days=1), "deploy", 3)

        result = await cap_gate.check_step_caps("agent-1", steps("deploy"))
        assert result.allowed

    async def test_other_agents_ignored(self, cap_gate, db_session):
        await seed_mission_steps(db_session, FROZEN_NOW, "deploy", 3, agent_id="agent-2")

        result = await cap_gate.check_step_caps("agent-1", steps("deploy"))
        assert result.allowed

    async def test_pending_proposals_do_not_count(self, cap_gate, db_session):
        for _ in range(3):
            await seed_proposal(db_session, FROZEN_NOW, kinds=("deploy",))

        result = await cap_gate.check_step_caps("agent-1", steps("deploy"))
        assert result.allowed
