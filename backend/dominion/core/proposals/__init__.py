"""
Dominion Proposal Lifecycle
===========================

Accepts work proposals from agents, prices them, enforces quotas and caps,
decides auto-approval and materializes approved proposals into missions.

Components:
- StepKindCatalog: Static cost / risk / daily cap per step kind
- CostEstimator: Catalog-derived proposal cost
- ProposalValidator: Structural checks
- QuotaGate: Per-agent daily proposal count and cost ceilings
- StepCapGate: Per-agent, per-kind daily step caps
- AutoApprovalEvaluator: Policy-driven auto-approval
- MissionMaterializer: Atomic proposal -> mission + steps
- AuditEmitter: Best-effort agent event log
- ProposalLifecycleEngine: Orchestrator and read surface
"""

from dominion.core.proposals.audit import AuditEmitter
from dominion.core.proposals.auto_approval import AutoApprovalEvaluator
from dominion.core.proposals.caps import StepCapGate
from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKind, StepKindCatalog, StepKindSpec
from dominion.core.proposals.cost import CostEstimator
from dominion.core.proposals.engine import ProposalLifecycleEngine
from dominion.core.proposals.errors import (
    MaterializationError,
    ProposalExpiredError,
    ProposalLifecycleError,
    ProposalNotFoundError,
    ProposalStateError,
)
from dominion.core.proposals.materializer import MissionMaterializer
from dominion.core.proposals.policy import DatabasePolicyStore, PolicyStore, StaticPolicyStore
from dominion.core.proposals.quota import QuotaGate
from dominion.core.proposals.results import ApprovalDecision, GateResult
from dominion.core.proposals.validator import ProposalValidator

__all__ = [
    "DEFAULT_CATALOG",
    "ApprovalDecision",
    "AuditEmitter",
    "AutoApprovalEvaluator",
    "CostEstimator",
    "DatabasePolicyStore",
    "GateResult",
    "MaterializationError",
    "MissionMaterializer",
    "PolicyStore",
    "ProposalExpiredError",
    "ProposalLifecycleEngine",
    "ProposalLifecycleError",
    "ProposalNotFoundError",
    "ProposalStateError",
    "ProposalValidator",
    "QuotaGate",
    "StaticPolicyStore",
    "StepCapGate",
    "StepKind",
    "StepKindCatalog",
    "StepKindSpec",
]
