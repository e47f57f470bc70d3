"""
Policy API Routes.

Operator editing of the quota and auto-approval documents. Changes apply
to the next submission; nothing is cached.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from dominion.api.deps import PolicyStoreDep
from dominion.core.proposals import DEFAULT_CATALOG
from dominion.core.schemas import AutoApprovalPolicy, DailyQuota

router = APIRouter(prefix="/policy", tags=["policy"])


@router.get("/auto-approve", response_model=AutoApprovalPolicy)
async def get_auto_approve(store: PolicyStoreDep):
    policy = await store.get_auto_approval_policy()
    if policy is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Auto-approval policy not configured",
        )
    return policy


@router.put("/auto-approve", response_model=AutoApprovalPolicy)
async def put_auto_approve(
    policy: AutoApprovalPolicy,
    store: PolicyStoreDep,
    updated_by: Optional[str] = Query(None),
):
    unknown = [k for k in policy.require_approval_kinds if k not in DEFAULT_CATALOG]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown step kinds: {unknown}",
        )
    await store.set_auto_approval_policy(policy, updated_by=updated_by)
    return policy


@router.get("/daily-quotas", response_model=dict[str, DailyQuota])
async def get_daily_quotas(store: PolicyStoreDep):
    return await store.get_daily_quotas()


@router.put("/daily-quotas/{agent_id}", response_model=DailyQuota)
async def put_daily_quota(
    agent_id: str,
    quota: DailyQuota,
    store: PolicyStoreDep,
    updated_by: Optional[str] = Query(None),
):
    await store.set_daily_quota(agent_id, quota, updated_by=updated_by)
    return quota
