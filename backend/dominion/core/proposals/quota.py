"""
Quota Gate - per-agent daily proposal count and cost ceilings.

This is a read-then-decide check with no reservation step. Two concurrent
submissions from one agent can both read usage below the ceiling and both
be admitted; the quota is a soft limit under concurrency.
"""

from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.proposals.clock import Clock, utcnow
from dominion.core.proposals.policy import PolicyStore
from dominion.core.proposals.results import GateResult
from dominion.core.proposals.usage import proposal_usage
from dominion.core.schemas import RejectionCode

logger = structlog.get_logger()


class QuotaGate:
    """Fail-closed: an agent without a configured quota cannot submit."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        policy_store: PolicyStore,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.policy_store = policy_store
        self.clock = clock

    async def check_daily_limits(self, agent_id: str, candidate_cost: Decimal) -> GateResult:
        quota = await self.policy_store.get_daily_quota(agent_id)
        if quota is None:
            logger.warning("quota_policy_missing", agent_id=agent_id)
            return GateResult.deny(
                RejectionCode.POLICY_MISSING,
                f"No daily quota configured for agent {agent_id}",
            )

        async with self.session_factory() as session:
            count, existing_cost = await proposal_usage(session, agent_id, self.clock())

        if count >= quota.max_proposals:
            logger.info(
                "quota_denied",
                agent_id=agent_id,
                proposals_today=count,
                max_proposals=quota.max_proposals,
            )
            return GateResult.deny(
                RejectionCode.QUOTA_EXCEEDED,
                f"Daily proposal limit exceeded: {count + 1}/{quota.max_proposals} "
                f"({count} already submitted today)",
            )

        projected = existing_cost + candidate_cost
        if projected > quota.max_cost:
            logger.info(
                "quota_denied",
                agent_id=agent_id,
                cost_today=str(existing_cost),
                candidate_cost=str(candidate_cost),
                max_cost=str(quota.max_cost),
            )
            return GateResult.deny(
                RejectionCode.QUOTA_EXCEEDED,
                f"Daily cost limit exceeded: ${projected:.2f}/${quota.max_cost:.2f} "
                f"(${existing_cost:.2f} spent today + ${candidate_cost:.2f} proposed)",
            )

        return GateResult.allow()
