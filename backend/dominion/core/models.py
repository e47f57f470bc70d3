"""
Dominion Ops - Database Models
==============================

SQLAlchemy models for the proposal lifecycle:
proposals, the missions they materialize into, mission steps,
the agent event (audit) log and operator-managed policy documents.
"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dominion.core.database import Base


# ==========================================================================
# Enums
# ==========================================================================

class ProposalStatus(str, enum.Enum):
    """Review state of a mission proposal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MissionStatus(str, enum.Enum):
    """Mission execution state. Only ACTIVE is set by this service."""
    ACTIVE = "active"
    COMPLETED = "completed"
    PARTIAL = "partial"        # Some steps completed, some failed
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepStatus(str, enum.Enum):
    """Execution state of a single mission step."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# ==========================================================================
# Mixins
# ==========================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ==========================================================================
# Proposal Lifecycle Models
# ==========================================================================

class MissionProposal(Base, TimestampMixin):
    """
    A unit of work requested by an agent.

    created_at is written explicitly by the engine (not left to the
    server default) so daily quota windows follow the engine clock.
    """

    __tablename__ = "ops_mission_proposals"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    agent_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    priority: Mapped[int] = mapped_column(
        Integer,
        default=50,
        nullable=False,
    )  # 1-100
    estimated_cost_usd: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )
    proposed_steps: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )  # Ordered list of step templates
    proposal_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    # Review
    status: Mapped[ProposalStatus] = mapped_column(
        Enum(ProposalStatus, values_callable=_enum_values, name="proposalstatus"),
        default=ProposalStatus.PENDING,
        nullable=False,
        index=True,
    )
    auto_approved: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )  # Operator id for manual decisions
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    missions: Mapped[list["Mission"]] = relationship(
        back_populates="proposal",
    )

    def __repr__(self) -> str:
        return f"<MissionProposal {self.agent_id}:{self.title!r} [{self.status.value}]>"


class Mission(Base, TimestampMixin):
    """
    Executable materialization of an approved proposal.

    Never exists without its steps: see MissionMaterializer.
    """

    __tablename__ = "ops_missions"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    proposal_id: Mapped[Optional[UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ops_mission_proposals.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    agent_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Cost
    estimated_cost_usd: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    actual_cost_usd: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )

    # Execution state
    status: Mapped[MissionStatus] = mapped_column(
        Enum(MissionStatus, values_callable=_enum_values, name="missionstatus"),
        default=MissionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    progress_pct: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # Timing
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    proposal: Mapped[Optional["MissionProposal"]] = relationship(
        back_populates="missions",
    )
    steps: Mapped[list["MissionStep"]] = relationship(
        back_populates="mission",
        lazy="selectin",
        order_by="MissionStep.step_order",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Mission {self.agent_id}:{self.title!r} [{self.status.value}]>"


class MissionStep(Base, TimestampMixin):
    """
    One ordered unit of work within a mission.

    step_order is 1-based, contiguous and fixed at materialization.
    """

    __tablename__ = "ops_mission_steps"
    __table_args__ = (
        UniqueConstraint("mission_id", "step_order", name="uq_mission_step_order"),
    )

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    mission_id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ops_missions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    agent_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    step_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    input_data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )

    # Execution
    status: Mapped[StepStatus] = mapped_column(
        Enum(StepStatus, values_callable=_enum_values, name="stepstatus"),
        default=StepStatus.PENDING,
        nullable=False,
    )
    max_retries: Mapped[int] = mapped_column(
        Integer,
        default=3,
        nullable=False,
    )
    retry_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    output_data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    mission: Mapped["Mission"] = relationship(
        back_populates="steps",
    )

    def __repr__(self) -> str:
        return f"<MissionStep #{self.step_order} {self.kind} [{self.status.value}]>"


class AgentEvent(Base, TimestampMixin):
    """
    Append-only agent event log.

    Audit sink for lifecycle events; rows are written best-effort.
    """

    __tablename__ = "ops_agent_events"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    agent_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )  # proposal_created, proposal_approved, error_occurred, ...
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    details: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    cost_usd: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AgentEvent {self.agent_id}:{self.kind}>"


class OpsPolicy(Base, TimestampMixin):
    """
    Operator-managed policy document.

    Known keys: daily_quotas, auto_approve.
    """

    __tablename__ = "ops_policy"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    value: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    updated_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<OpsPolicy {self.key}>"
