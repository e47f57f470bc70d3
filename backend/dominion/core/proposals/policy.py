"""
Policy Store - operator-managed quota and auto-approval documents.

The engine only reads policy, and re-reads it on every call so an
operator's change takes effect on the next submission.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.models import OpsPolicy
from dominion.core.schemas import AutoApprovalPolicy, DailyQuota

DAILY_QUOTAS_KEY = "daily_quotas"
AUTO_APPROVE_KEY = "auto_approve"


class PolicyStore(ABC):
    """Read interface consulted by QuotaGate and AutoApprovalEvaluator."""

    @abstractmethod
    async def get_daily_quota(self, agent_id: str) -> Optional[DailyQuota]:
        """Quota for one agent, or None when not configured."""

    @abstractmethod
    async def get_auto_approval_policy(self) -> Optional[AutoApprovalPolicy]:
        """Auto-approval rules, or None when not configured."""


class StaticPolicyStore(PolicyStore):
    """Fixed in-memory policy."""

    def __init__(
        self,
        daily_quotas: Optional[dict[str, DailyQuota]] = None,
        auto_approve: Optional[AutoApprovalPolicy] = None,
    ):
        self.daily_quotas = dict(daily_quotas or {})
        self.auto_approve = auto_approve

    async def get_daily_quota(self, agent_id: str) -> Optional[DailyQuota]:
        return self.daily_quotas.get(agent_id)

    async def get_auto_approval_policy(self) -> Optional[AutoApprovalPolicy]:
        return self.auto_approve


class DatabasePolicyStore(PolicyStore):
    """
    Policy documents stored in the ops_policy table.

    Documents:
        daily_quotas: {agent_id: {max_proposals, max_cost}}
        auto_approve: {enabled, max_auto_approve_cost,
                       require_approval_kinds, low_risk_threshold}
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _load(self, key: str) -> Optional[dict]:
        async with self.session_factory() as session:
            row = await session.get(OpsPolicy, key)
            return dict(row.value) if row else None

    async def get_daily_quotas(self) -> dict[str, DailyQuota]:
        document = await self._load(DAILY_QUOTAS_KEY) or {}
        return {agent: DailyQuota.model_validate(q) for agent, q in document.items()}

    async def get_daily_quota(self, agent_id: str) -> Optional[DailyQuota]:
        document = await self._load(DAILY_QUOTAS_KEY)
        if not document or agent_id not in document:
            return None
        return DailyQuota.model_validate(document[agent_id])

    async def get_auto_approval_policy(self) -> Optional[AutoApprovalPolicy]:
        document = await self._load(AUTO_APPROVE_KEY)
        if document is None:
            return None
        return AutoApprovalPolicy.model_validate(document)

    # ==========================================================================
    # Operator writes (never called by the engine)
    # ==========================================================================

    async def set_daily_quota(
        self,
        agent_id: str,
        quota: DailyQuota,
        updated_by: Optional[str] = None,
    ) -> None:
        async with self.session_factory() as session:
            row = await session.get(OpsPolicy, DAILY_QUOTAS_KEY)
            document = dict(row.value) if row else {}
            document[agent_id] = quota.model_dump(mode="json")
            await self._put(session, row, DAILY_QUOTAS_KEY, document, updated_by)

    async def set_auto_approval_policy(
        self,
        policy: AutoApprovalPolicy,
        updated_by: Optional[str] = None,
    ) -> None:
        async with self.session_factory() as session:
            row = await session.get(OpsPolicy, AUTO_APPROVE_KEY)
            await self._put(
                session, row, AUTO_APPROVE_KEY, policy.model_dump(mode="json"), updated_by
            )

    @staticmethod
    async def _put(
        session: AsyncSession,
        row: Optional[OpsPolicy],
        key: str,
        document: dict,
        updated_by: Optional[str],
    ) -> None:
        if row is None:
            session.add(OpsPolicy(key=key, value=document, updated_by=updated_by))
        else:
            # Reassign so the JSON column is flagged dirty
            row.value = document
            row.updated_by = updated_by
        await session.commit()
