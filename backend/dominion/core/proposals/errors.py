"""
Proposal lifecycle faults.

Rejections and deferrals are returned as values (GateResult,
ApprovalDecision, SubmissionResult); only the conditions below are raised.
"""

from typing import Optional
from uuid import UUID


class ProposalLifecycleError(Exception):
    """Base class for proposal lifecycle faults."""


class ProposalNotFoundError(ProposalLifecycleError):
    def __init__(self, proposal_id: UUID):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} not found")


class ProposalStateError(ProposalLifecycleError):
    """Proposal already left the pending state."""

    def __init__(self, proposal_id: UUID, status: str):
        self.proposal_id = proposal_id
        self.status = status
        super().__init__(f"Proposal {proposal_id} is {status}, expected pending")


class ProposalExpiredError(ProposalLifecycleError):
    def __init__(self, proposal_id: UUID):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} has expired")


class MaterializationError(ProposalLifecycleError):
    """The mission-creation transaction failed and was rolled back."""

    def __init__(self, proposal_id: UUID, reason: Optional[str] = None):
        self.proposal_id = proposal_id
        message = f"Failed to materialize mission for proposal {proposal_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
