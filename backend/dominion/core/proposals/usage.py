"""
Daily Usage - live aggregates behind the quota and cap gates.

Usage is derived from the proposal and step tables on every call and never
cached.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dominion.core.models import Mission, MissionProposal, MissionStep
from dominion.core.proposals.clock import day_window

CENT = Decimal("0.01")


async def proposal_usage(
    session: AsyncSession,
    agent_id: str,
    now: datetime,
) -> tuple[int, Decimal]:
    """Count and cost-sum of the agent's proposals created today."""
    start, end = day_window(now)
    result = await session.execute(
        select(
            func.count(MissionProposal.id),
            func.coalesce(func.sum(MissionProposal.estimated_cost_usd), 0),
        )
        .where(MissionProposal.agent_id == agent_id)
        .where(MissionProposal.created_at >= start)
        .where(MissionProposal.created_at < end)
    )
    count, cost = result.one()
    return int(count), Decimal(str(cost)).quantize(CENT)


async def step_counts_by_kind(
    session: AsyncSession,
    agent_id: str,
    now: datetime,
) -> dict[str, int]:
    """Materialized steps per kind on the agent's missions created today."""
    start, end = day_window(now)
    result = await session.execute(
        select(MissionStep.kind, func.count(MissionStep.id))
        .join(Mission, MissionStep.mission_id == Mission.id)
        .where(Mission.agent_id == agent_id)
        .where(Mission.created_at >= start)
        .where(Mission.created_at < end)
        .group_by(MissionStep.kind)
    )
    return {kind: int(count) for kind, count in result.all()}
