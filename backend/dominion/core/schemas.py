"""
Dominion Ops - Pydantic Schemas
===============================

Request, response and value schemas for the proposal lifecycle.

Submission schemas are lenient: structural rules (lengths,
ranges, known step kinds) are enforced by ProposalValidator so that a bad
submission comes back as a structured rejection instead of a 422.
"""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from dominion.core.models import MissionStatus, ProposalStatus, StepStatus


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _to_decimal(v: Any) -> Any:
    """Floats from JSON documents go through str so 0.6 stays 0.6."""
    if isinstance(v, float):
        return Decimal(str(v))
    return v


# ==========================================================================
# Submission
# ==========================================================================

class VerbatimSchema(BaseModel):
    """Text is kept exactly as submitted or stored; lengths are checked as given."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class StepTemplate(VerbatimSchema):
    """
    A proposed step, before it is materialized into a mission step.

    description and input_data may be null; the materializer stores
    "" and {} in their place.
    """

    kind: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    input_data: Optional[dict[str, Any]] = None
    max_retries: Optional[int] = None


class ProposalSubmission(VerbatimSchema):
    """
    Proposal as submitted by an agent.

    estimated_cost_usd is accepted for compatibility but never trusted;
    the engine recomputes it from the step catalog. priority is taken as
    any number so a fractional value reaches ProposalValidator.
    """

    id: Optional[UUID] = None
    agent_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Union[int, float]] = None
    estimated_cost_usd: Optional[Any] = None
    proposed_steps: Optional[list[StepTemplate]] = None
    metadata: Optional[dict[str, Any]] = None


class SubmissionStatus(str, enum.Enum):
    """Outcome of a submission."""
    PENDING = "pending"
    AUTO_APPROVED = "auto_approved"
    REJECTED = "rejected"


class RejectionCode(str, enum.Enum):
    """Why a submission was turned away (or deferred, for POLICY_MISSING)."""
    VALIDATION_ERROR = "validation_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    CAP_EXCEEDED = "cap_exceeded"
    POLICY_MISSING = "policy_missing"


class SubmissionResult(BaseSchema):
    """Result of ProposalLifecycleEngine.submit."""

    proposal_id: UUID
    status: SubmissionStatus
    estimated_cost_usd: Decimal
    mission_id: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    rejection_code: Optional[RejectionCode] = None
    review_reason: Optional[str] = None  # Why auto-approval deferred


# ==========================================================================
# Policy Documents
# ==========================================================================

class DailyQuota(BaseSchema):
    """Per-agent daily ceiling on proposal count and cumulative cost."""

    max_proposals: int = Field(ge=0)
    max_cost: Decimal = Field(ge=0)

    @field_validator("max_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Any:
        return _to_decimal(v)


class AutoApprovalPolicy(BaseSchema):
    """Process-wide auto-approval rules."""

    enabled: bool = False
    max_auto_approve_cost: Decimal = Field(default=Decimal("0"), ge=0)
    require_approval_kinds: list[str] = Field(default_factory=list)
    low_risk_threshold: float = 0.0

    @field_validator("max_auto_approve_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Any:
        return _to_decimal(v)


# ==========================================================================
# Read Models
# ==========================================================================

class ProposalRead(VerbatimSchema):
    """Stored proposal."""

    id: UUID
    agent_id: str
    title: str
    description: str
    priority: int
    estimated_cost_usd: Decimal
    proposed_steps: list[StepTemplate]
    metadata: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("proposal_metadata", "metadata"),
    )
    status: ProposalStatus
    auto_approved: bool
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    reviewed_at: Optional[datetime] = None


class MissionStepRead(VerbatimSchema):
    """Materialized mission step."""

    id: UUID
    step_order: int
    kind: str
    title: str
    description: str
    input_data: Optional[dict[str, Any]] = None
    status: StepStatus
    max_retries: int
    retry_count: int


class MissionRead(VerbatimSchema):
    """Mission with its ordered steps."""

    id: UUID
    proposal_id: Optional[UUID] = None
    agent_id: str
    title: str
    description: str
    priority: int
    estimated_cost_usd: Decimal
    actual_cost_usd: Decimal
    status: MissionStatus
    progress_pct: int
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    steps: list[MissionStepRead] = Field(default_factory=list)


class AgentStats(BaseSchema):
    """Per-agent proposal statistics over a trailing window."""

    agent_id: str
    window_days: int
    proposals_submitted: int
    proposals_approved: int
    auto_approval_rate: float  # Percentage, 0-100
    total_cost_usd: Decimal
    avg_priority: float


class DailyUsage(BaseSchema):
    """Derived usage for one agent on one UTC calendar day."""

    agent_id: str
    day: date
    proposal_count: int
    proposal_cost_usd: Decimal
    step_counts: dict[str, int] = Field(default_factory=dict)
    quota: Optional[DailyQuota] = None


class StepKindInfo(BaseSchema):
    """Catalog entry as exposed over the API."""

    kind: str
    base_cost_usd: Decimal
    risk_level: int
    cap_per_day: int


# ==========================================================================
# Common Schemas
# ==========================================================================

class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    database: str
