"""
Mission Materializer - turns an approved proposal into a mission with steps.

The one place where several rows are written together. Both the
auto-approval path and the manual review path come through materialize(),
so step ordering and transaction semantics cannot drift apart.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.config import settings
from dominion.core.models import (
    Mission,
    MissionProposal,
    MissionStatus,
    MissionStep,
    ProposalStatus,
    StepStatus,
)
from dominion.core.proposals.clock import Clock, as_utc, utcnow
from dominion.core.proposals.errors import (
    MaterializationError,
    ProposalExpiredError,
    ProposalLifecycleError,
    ProposalNotFoundError,
    ProposalStateError,
)
from dominion.core.schemas import StepTemplate

logger = structlog.get_logger()


class MissionMaterializer:
    """
    Atomic proposal -> mission transition.

    In one transaction:
    1. Mark the proposal approved (auto_approved only on the automatic path)
    2. Create the mission (status active, started now)
    3. Insert one step per proposed step, step_order 1..N in proposal order

    Any failure rolls back all three; the proposal stays pending.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def materialize(
        self,
        proposal_id: UUID,
        auto_approved: bool = False,
        reviewed_by: Optional[str] = None,
        check_expiry: bool = False,
    ) -> UUID:
        """
        Approve a pending proposal and create its mission.

        Args:
            proposal_id: Proposal to approve
            auto_approved: True only when called from the auto-approval path
            reviewed_by: Operator id for manual approvals
            check_expiry: Refuse proposals past expires_at (manual path)

        Returns:
            ID of the new mission

        Raises:
            ProposalNotFoundError, ProposalStateError, ProposalExpiredError:
                Nothing was written
            MaterializationError: The transaction failed and was rolled back
        """
        now = self.clock()
        mission_id = uuid4()

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    proposal = await session.get(
                        MissionProposal, proposal_id, with_for_update=True
                    )
                    self._check_approvable(proposal, proposal_id, now, check_expiry)

                    proposal.status = ProposalStatus.APPROVED
                    proposal.auto_approved = auto_approved
                    proposal.reviewed_at = now
                    proposal.reviewed_by = reviewed_by

                    mission = Mission(
                        id=mission_id,
                        proposal_id=proposal.id,
                        agent_id=proposal.agent_id,
                        title=proposal.title,
                        description=proposal.description,
                        priority=proposal.priority,
                        estimated_cost_usd=proposal.estimated_cost_usd,
                        status=MissionStatus.ACTIVE,
                        created_at=now,
                        started_at=now,
                        last_activity_at=now,
                    )
                    session.add(mission)
                    await session.flush()

                    steps = self._build_steps(proposal, mission_id, now)
                    session.add_all(steps)
                    await session.flush()
        except ProposalLifecycleError:
            raise
        except Exception as exc:
            logger.error(
                "mission_materialization_failed",
                proposal_id=str(proposal_id),
                error=str(exc),
            )
            raise MaterializationError(proposal_id, str(exc)) from exc

        logger.info(
            "mission_materialized",
            proposal_id=str(proposal_id),
            mission_id=str(mission_id),
            steps=len(steps),
            auto_approved=auto_approved,
        )
        return mission_id

    @staticmethod
    def _check_approvable(
        proposal: Optional[MissionProposal],
        proposal_id: UUID,
        now: datetime,
        check_expiry: bool,
    ) -> None:
        if proposal is None:
            raise ProposalNotFoundError(proposal_id)
        if proposal.status != ProposalStatus.PENDING:
            raise ProposalStateError(proposal_id, proposal.status.value)
        if check_expiry and as_utc(proposal.expires_at) <= as_utc(now):
            raise ProposalExpiredError(proposal_id)

    def _build_steps(
        self,
        proposal: MissionProposal,
        mission_id: UUID,
        now: datetime,
    ) -> list[MissionStep]:
        steps = []
        for position, raw in enumerate(proposal.proposed_steps, start=1):
            template = StepTemplate.model_validate(raw)
            max_retries = template.max_retries
            if max_retries is None:
                max_retries = settings.STEP_DEFAULT_MAX_RETRIES
            steps.append(MissionStep(
                id=uuid4(),
                mission_id=mission_id,
                agent_id=proposal.agent_id,
                step_order=position,
                kind=template.kind,
                title=template.title,
                description=template.description or "",
                input_data=template.input_data or {},
                max_retries=max_retries,
                status=StepStatus.PENDING,
                created_at=now,
            ))
        return steps
