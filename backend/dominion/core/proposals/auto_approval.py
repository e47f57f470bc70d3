"""
Auto-Approval Evaluator - decides whether a proposal may skip manual review.

Rules, in order (first match defers):
1. Policy missing or disabled
2. Estimated cost above max_auto_approve_cost (equal is allowed)
3. Any step kind listed in require_approval_kinds
4. Mean catalog risk level above low_risk_threshold
"""

from decimal import Decimal
from typing import Optional

from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKindCatalog
from dominion.core.proposals.policy import PolicyStore
from dominion.core.proposals.results import ApprovalDecision
from dominion.core.schemas import AutoApprovalPolicy, RejectionCode, StepTemplate


def decide(
    policy: Optional[AutoApprovalPolicy],
    estimated_cost: Decimal,
    steps: list[StepTemplate],
    catalog: StepKindCatalog = DEFAULT_CATALOG,
) -> ApprovalDecision:
    """Pure decision given a policy snapshot."""
    if policy is None:
        return ApprovalDecision.defer(
            "Auto-approval policy not found", code=RejectionCode.POLICY_MISSING
        )

    if not policy.enabled:
        return ApprovalDecision.defer("Auto-approval disabled")

    if estimated_cost > policy.max_auto_approve_cost:
        return ApprovalDecision.defer(
            f"Cost exceeds auto-approval threshold: "
            f"${estimated_cost:.2f} > ${policy.max_auto_approve_cost:.2f}"
        )

    gated = sorted({s.kind for s in steps if s.kind in policy.require_approval_kinds})
    if gated:
        return ApprovalDecision.defer(
            f"Contains step kinds requiring approval: {', '.join(gated)}"
        )

    avg_risk = sum(catalog[s.kind].risk_level for s in steps) / len(steps)
    if avg_risk > policy.low_risk_threshold:
        return ApprovalDecision.defer(
            f"Risk level too high: {avg_risk:.1f} > {policy.low_risk_threshold}"
        )

    return ApprovalDecision.approve()


class AutoApprovalEvaluator:
    """Loads the current policy and applies decide(). Performs no writes."""

    def __init__(self, policy_store: PolicyStore, catalog: StepKindCatalog = DEFAULT_CATALOG):
        self.policy_store = policy_store
        self.catalog = catalog

    async def evaluate(self, estimated_cost: Decimal, steps: list[StepTemplate]) -> ApprovalDecision:
        policy = await self.policy_store.get_auto_approval_policy()
        return decide(policy, estimated_cost, steps, self.catalog)
