"""
Proposal Lifecycle Engine - single entry point for agent proposals.

submit():
    validate -> estimate cost -> quota gate -> cap gate -> persist pending
    -> evaluate auto-approval -> materialize (auto) or leave for review

Validation failures and gate denials come back as `rejected` results.
Only infrastructure faults are raised, after a best-effort audit event.
"""

import time
from datetime import timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.config import settings
from dominion.core.models import Mission, MissionProposal, ProposalStatus
from dominion.core.proposals.audit import AuditEmitter
from dominion.core.proposals.auto_approval import AutoApprovalEvaluator
from dominion.core.proposals.caps import StepCapGate
from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKindCatalog
from dominion.core.proposals.clock import Clock, day_window, utcnow
from dominion.core.proposals.cost import CostEstimator
from dominion.core.proposals.errors import ProposalNotFoundError, ProposalStateError
from dominion.core.proposals.materializer import MissionMaterializer
from dominion.core.proposals.policy import PolicyStore
from dominion.core.proposals.quota import QuotaGate
from dominion.core.proposals.usage import CENT, proposal_usage, step_counts_by_kind
from dominion.core.proposals.validator import ProposalValidator
from dominion.core.schemas import (
    AgentStats,
    DailyUsage,
    MissionRead,
    ProposalRead,
    ProposalSubmission,
    RejectionCode,
    SubmissionResult,
    SubmissionStatus,
)

logger = structlog.get_logger()


def _bounded(value: Optional[int], ceiling: int, name: str) -> int:
    """None means the ceiling; anything above it is clamped."""
    if value is None:
        return ceiling
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return min(value, ceiling)


class ProposalLifecycleEngine:
    """
    Composes validator, estimator, gates, evaluator, materializer and audit.

    Holds no mutable state between calls; policy is re-read per call.
    Concurrent submissions from the same agent are not serialized.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        policy_store: PolicyStore,
        catalog: StepKindCatalog = DEFAULT_CATALOG,
        clock: Clock = utcnow,
        audit: Optional[AuditEmitter] = None,
    ):
        self.session_factory = session_factory
        self.policy_store = policy_store
        self.catalog = catalog
        self.clock = clock

        self.validator = ProposalValidator(catalog)
        self.estimator = CostEstimator(catalog)
        self.quota_gate = QuotaGate(session_factory, policy_store, clock)
        self.cap_gate = StepCapGate(session_factory, catalog, clock)
        self.evaluator = AutoApprovalEvaluator(policy_store, catalog)
        self.materializer = MissionMaterializer(session_factory, clock)
        self.audit = audit or AuditEmitter(session_factory, clock)

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def submit(self, proposal: ProposalSubmission) -> SubmissionResult:
        """
        Create a proposal and auto-approve it when policy allows.

        Raises:
            MaterializationError: Auto-approval transaction failed; the
                proposal stays pending
            Exception: Any store failure, re-raised after an audit attempt
        """
        started = time.monotonic()
        proposal_id = proposal.id or uuid4()
        log = logger.bind(proposal_id=str(proposal_id), agent_id=proposal.agent_id)

        try:
            return await self._submit(proposal, proposal_id, log)
        except Exception as exc:
            log.error("proposal_submit_failed", error=str(exc))
            await self.audit.emit(
                proposal.agent_id or "unknown",
                "error_occurred",
                "Proposal creation failed",
                {"proposal_id": proposal_id, "error": str(exc)},
            )
            raise
        finally:
            log.debug(
                "proposal_submit_finished",
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )

    async def _submit(self, proposal, proposal_id, log) -> SubmissionResult:
        reason = self.validator.validate(proposal)
        if reason:
            log.info("proposal_rejected", code=RejectionCode.VALIDATION_ERROR.value, reason=reason)
            return SubmissionResult(
                proposal_id=proposal_id,
                status=SubmissionStatus.REJECTED,
                estimated_cost_usd=Decimal("0"),
                rejection_code=RejectionCode.VALIDATION_ERROR,
                rejection_reason=reason,
            )

        cost = self.estimator.estimate(proposal.proposed_steps)

        verdict = await self.quota_gate.check_daily_limits(proposal.agent_id, cost)
        if verdict.allowed:
            verdict = await self.cap_gate.check_step_caps(proposal.agent_id, proposal.proposed_steps)
        if not verdict.allowed:
            log.info("proposal_rejected", code=verdict.code.value, reason=verdict.reason)
            return SubmissionResult(
                proposal_id=proposal_id,
                status=SubmissionStatus.REJECTED,
                estimated_cost_usd=cost,
                rejection_code=verdict.code,
                rejection_reason=verdict.reason,
            )

        await self._insert_pending(proposal, proposal_id, cost)
        log.info("proposal_submitted", estimated_cost_usd=str(cost))

        decision = await self.evaluator.evaluate(cost, proposal.proposed_steps)
        if decision.approved:
            mission_id = await self.materializer.materialize(proposal_id, auto_approved=True)
            await self.audit.emit(
                proposal.agent_id,
                "proposal_created",
                proposal.title,
                {
                    "proposal_id": proposal_id,
                    "auto_approved": True,
                    "mission_id": mission_id,
                    "cost": cost,
                },
                cost_usd=cost,
            )
            return SubmissionResult(
                proposal_id=proposal_id,
                status=SubmissionStatus.AUTO_APPROVED,
                estimated_cost_usd=cost,
                mission_id=mission_id,
            )

        log.info("proposal_awaiting_review", reason=decision.reason)
        await self.audit.emit(
            proposal.agent_id,
            "proposal_created",
            proposal.title,
            {
                "proposal_id": proposal_id,
                "auto_approved": False,
                "requires_approval": True,
                "review_reason": decision.reason,
                "cost": cost,
            },
            cost_usd=cost,
        )
        return SubmissionResult(
            proposal_id=proposal_id,
            status=SubmissionStatus.PENDING,
            estimated_cost_usd=cost,
            rejection_code=decision.code,
            review_reason=decision.reason,
        )

    async def _insert_pending(
        self,
        proposal: ProposalSubmission,
        proposal_id: UUID,
        cost: Decimal,
    ) -> None:
        now = self.clock()
        async with self.session_factory() as session:
            session.add(MissionProposal(
                id=proposal_id,
                agent_id=proposal.agent_id,
                title=proposal.title,
                description=proposal.description,
                priority=int(proposal.priority),
                estimated_cost_usd=cost,
                proposed_steps=[s.model_dump(mode="json") for s in proposal.proposed_steps],
                proposal_metadata=proposal.metadata or {},
                status=ProposalStatus.PENDING,
                auto_approved=False,
                created_at=now,
                expires_at=now + timedelta(hours=settings.PROPOSAL_TTL_HOURS),
            ))
            await session.commit()

    # ==========================================================================
    # Manual Review
    # ==========================================================================

    async def approve(self, proposal_id: UUID, reviewed_by: Optional[str] = None) -> UUID:
        """
        Manually approve a pending, unexpired proposal.

        Raises:
            ProposalNotFoundError, ProposalStateError, ProposalExpiredError,
            MaterializationError
        """
        mission_id = await self.materializer.materialize(
            proposal_id,
            auto_approved=False,
            reviewed_by=reviewed_by,
            check_expiry=True,
        )
        proposal = await self.get_proposal(proposal_id)
        await self.audit.emit(
            proposal.agent_id,
            "proposal_approved",
            proposal.title,
            {"proposal_id": proposal_id, "mission_id": mission_id, "reviewed_by": reviewed_by},
            cost_usd=proposal.estimated_cost_usd,
        )
        return mission_id

    async def reject(
        self,
        proposal_id: UUID,
        reason: str,
        reviewed_by: Optional[str] = None,
    ) -> ProposalRead:
        """
        Manually reject a pending proposal.

        Raises:
            ProposalNotFoundError, ProposalStateError
        """
        async with self.session_factory() as session:
            async with session.begin():
                proposal = await session.get(MissionProposal, proposal_id, with_for_update=True)
                if proposal is None:
                    raise ProposalNotFoundError(proposal_id)
                if proposal.status != ProposalStatus.PENDING:
                    raise ProposalStateError(proposal_id, proposal.status.value)

                proposal.status = ProposalStatus.REJECTED
                proposal.rejection_reason = reason
                proposal.reviewed_by = reviewed_by
                proposal.reviewed_at = self.clock()
            result = ProposalRead.model_validate(proposal)

        logger.info("proposal_rejected_by_reviewer", proposal_id=str(proposal_id), reviewed_by=reviewed_by)
        await self.audit.emit(
            result.agent_id,
            "proposal_rejected",
            result.title,
            {"proposal_id": proposal_id, "reason": reason, "reviewed_by": reviewed_by},
        )
        return result

    # ==========================================================================
    # Queries (read-only)
    # ==========================================================================

    async def get_proposal(self, proposal_id: UUID) -> Optional[ProposalRead]:
        async with self.session_factory() as session:
            proposal = await session.get(MissionProposal, proposal_id)
            return ProposalRead.model_validate(proposal) if proposal else None

    async def list_pending(self, limit: Optional[int] = None) -> list[ProposalRead]:
        """Unexpired pending proposals, highest priority first, then oldest."""
        limit = _bounded(limit, settings.PENDING_QUEUE_LIMIT, "limit")
        async with self.session_factory() as session:
            result = await session.execute(
                select(MissionProposal)
                .where(MissionProposal.status == ProposalStatus.PENDING)
                .where(MissionProposal.expires_at > self.clock())
                .order_by(
                    MissionProposal.priority.desc(),
                    MissionProposal.created_at.asc(),
                    MissionProposal.id.asc(),
                )
                .limit(limit)
            )
            return [ProposalRead.model_validate(p) for p in result.scalars().all()]

    async def list_proposals(
        self,
        status: Optional[ProposalStatus] = None,
        limit: Optional[int] = None,
    ) -> list[ProposalRead]:
        """Operator listing, newest first; expired proposals are included."""
        limit = _bounded(limit, settings.PENDING_QUEUE_LIMIT, "limit")
        query = select(MissionProposal)
        if status is not None:
            query = query.where(MissionProposal.status == status)
        query = query.order_by(
            MissionProposal.created_at.desc(),
            MissionProposal.id.asc(),
        ).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [ProposalRead.model_validate(p) for p in result.scalars().all()]

    async def get_agent_stats(self, agent_id: str, window_days: Optional[int] = None) -> AgentStats:
        if window_days is None:
            window_days = settings.AGENT_STATS_WINDOW_DAYS
        elif window_days < 1:
            raise ValueError(f"window_days must be at least 1, got {window_days}")
        since = self.clock() - timedelta(days=window_days)

        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    func.count(MissionProposal.id),
                    func.sum(case((MissionProposal.status == ProposalStatus.APPROVED, 1), else_=0)),
                    func.sum(case((MissionProposal.auto_approved == True, 1), else_=0)),
                    func.coalesce(func.sum(MissionProposal.estimated_cost_usd), 0),
                    func.coalesce(func.avg(MissionProposal.priority), 0),
                )
                .where(MissionProposal.agent_id == agent_id)
                .where(MissionProposal.created_at > since)
            )
            total, approved, auto_approved, total_cost, avg_priority = result.one()

        total = int(total)
        return AgentStats(
            agent_id=agent_id,
            window_days=window_days,
            proposals_submitted=total,
            proposals_approved=int(approved or 0),
            auto_approval_rate=(int(auto_approved or 0) / total * 100) if total else 0.0,
            total_cost_usd=Decimal(str(total_cost)).quantize(CENT),
            avg_priority=float(avg_priority),
        )

    async def get_daily_usage(self, agent_id: str) -> DailyUsage:
        """The same aggregate the gates evaluate, for the current UTC day."""
        now = self.clock()
        quota = await self.policy_store.get_daily_quota(agent_id)
        async with self.session_factory() as session:
            count, cost = await proposal_usage(session, agent_id, now)
            steps = await step_counts_by_kind(session, agent_id, now)
        return DailyUsage(
            agent_id=agent_id,
            day=day_window(now)[0].date(),
            proposal_count=count,
            proposal_cost_usd=cost,
            step_counts=steps,
            quota=quota,
        )

    async def get_mission(self, mission_id: UUID) -> Optional[MissionRead]:
        async with self.session_factory() as session:
            mission = await session.get(Mission, mission_id)
            return MissionRead.model_validate(mission) if mission else None
