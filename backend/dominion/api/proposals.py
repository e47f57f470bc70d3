"""
Proposal API Routes.

Agent submission, the manual review queue and per-agent usage/stats.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from dominion.api.deps import Engine
from dominion.core.models import ProposalStatus
from dominion.core.proposals import (
    ProposalExpiredError,
    ProposalLifecycleError,
    ProposalNotFoundError,
    ProposalStateError,
)
from dominion.core.schemas import (
    AgentStats,
    DailyUsage,
    ProposalRead,
    ProposalSubmission,
    SubmissionResult,
)

router = APIRouter(tags=["proposals"])


# ==========================================================================
# Schemas
# ==========================================================================

class ApproveRequest(BaseModel):
    """Request to approve a pending proposal."""
    reviewed_by: Optional[str] = Field(None, description="Operator identifier")


class RejectRequest(BaseModel):
    """Request to reject a pending proposal."""
    reason: str = Field(..., min_length=1, description="Reason for rejection")
    reviewed_by: Optional[str] = Field(None, description="Operator identifier")


class ApproveResponse(BaseModel):
    """Response after a manual approval."""
    proposal_id: UUID
    mission_id: UUID


def _http_error(exc: ProposalLifecycleError) -> HTTPException:
    if isinstance(exc, ProposalNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ProposalStateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ProposalExpiredError):
        code = status.HTTP_410_GONE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


# ==========================================================================
# Endpoints
# ==========================================================================

@router.post("/proposals", response_model=SubmissionResult)
async def submit_proposal(submission: ProposalSubmission, engine: Engine):
    """
    Submit a proposal.

    Rejections (validation, quota, cap) are a normal 200 response with
    status="rejected" and a reason; they are not HTTP errors.
    """
    return await engine.submit(submission)


@router.get("/proposals", response_model=list[ProposalRead])
async def list_proposals(
    engine: Engine,
    status_filter: Optional[ProposalStatus] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
):
    """All proposals, newest first, optionally filtered by status."""
    return await engine.list_proposals(status_filter, limit)


@router.get("/proposals/pending", response_model=list[ProposalRead])
async def list_pending_proposals(
    engine: Engine,
    limit: Optional[int] = Query(None, ge=1),
):
    """Review queue: unexpired pending proposals by priority, then age."""
    return await engine.list_pending(limit)


@router.get("/proposals/{proposal_id}", response_model=ProposalRead)
async def get_proposal(proposal_id: UUID, engine: Engine):
    proposal = await engine.get_proposal(proposal_id)
    if proposal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Proposal {proposal_id} not found",
        )
    return proposal


@router.post("/proposals/{proposal_id}/approve", response_model=ApproveResponse)
async def approve_proposal(proposal_id: UUID, request: ApproveRequest, engine: Engine):
    """
    Approve a pending proposal and create its mission.

    Uses the same materialization path as auto-approval.
    """
    try:
        mission_id = await engine.approve(proposal_id, reviewed_by=request.reviewed_by)
    except ProposalLifecycleError as exc:
        raise _http_error(exc) from exc
    return ApproveResponse(proposal_id=proposal_id, mission_id=mission_id)


@router.post("/proposals/{proposal_id}/reject", response_model=ProposalRead)
async def reject_proposal(proposal_id: UUID, request: RejectRequest, engine: Engine):
    try:
        return await engine.reject(
            proposal_id, reason=request.reason, reviewed_by=request.reviewed_by
        )
    except ProposalLifecycleError as exc:
        raise _http_error(exc) from exc


@router.get("/agents/{agent_id}/stats", response_model=AgentStats)
async def get_agent_stats(
    agent_id: str,
    engine: Engine,
    days: Optional[int] = Query(None, ge=1, le=365),
):
    return await engine.get_agent_stats(agent_id, days)


@router.get("/agents/{agent_id}/usage", response_model=DailyUsage)
async def get_agent_usage(agent_id: str, engine: Engine):
    """Today's proposal count/cost and materialized steps by kind."""
    return await engine.get_daily_usage(agent_id)
