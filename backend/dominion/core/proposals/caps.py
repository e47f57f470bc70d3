"""
Step Cap Gate - per-agent, per-kind daily step caps.

Counts only steps already materialized into today's missions. Pending
proposals do not count, so a burst of approvals can still overshoot a cap
before any of them executes.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKindCatalog
from dominion.core.proposals.clock import Clock, utcnow
from dominion.core.proposals.results import GateResult
from dominion.core.proposals.usage import step_counts_by_kind
from dominion.core.schemas import RejectionCode, StepTemplate

logger = structlog.get_logger()


class StepCapGate:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        catalog: StepKindCatalog = DEFAULT_CATALOG,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.catalog = catalog
        self.clock = clock

    async def check_step_caps(self, agent_id: str, steps: list[StepTemplate]) -> GateResult:
        async with self.session_factory() as session:
            current = await step_counts_by_kind(session, agent_id, self.clock())

        # Each kind is checked once, in first-appearance order
        for kind in dict.fromkeys(step.kind for step in steps):
            cap = self.catalog[kind].cap_per_day
            count = current.get(kind, 0)
            if count >= cap:
                logger.info("cap_denied", agent_id=agent_id, kind=kind, count=count, cap=cap)
                return GateResult.deny(
                    RejectionCode.CAP_EXCEEDED,
                    f"Daily cap exceeded for {kind}: {count}/{cap}",
                )

        return GateResult.allow()
