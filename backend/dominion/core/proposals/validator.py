"""
Proposal Validator - structural checks on a submitted proposal.
"""

from typing import Optional

from dominion.core.config import settings
from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKindCatalog
from dominion.core.schemas import ProposalSubmission

TITLE_MIN, TITLE_MAX = 5, 200
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 1000
PRIORITY_MIN, PRIORITY_MAX = 1, 100
STEP_TITLE_MIN, STEP_TITLE_MAX = 3, 200


def _length_ok(value: Optional[str], lo: int, hi: int) -> bool:
    return value is not None and lo <= len(value) <= hi


def _priority_ok(value: Optional[float]) -> bool:
    if value is None or not float(value).is_integer():
        return False
    return PRIORITY_MIN <= value <= PRIORITY_MAX


class ProposalValidator:
    """
    Checks run in a fixed order and stop at the first failure,
    so the same submission always yields the same reason.
    """

    def __init__(
        self,
        catalog: StepKindCatalog = DEFAULT_CATALOG,
        max_steps: Optional[int] = None,
    ):
        self.catalog = catalog
        self.max_steps = max_steps or settings.PROPOSAL_MAX_STEPS

    def validate(self, proposal: ProposalSubmission) -> Optional[str]:
        """
        Validate a submission.

        Returns:
            Human-readable reason on failure, None if valid
        """
        if not proposal.agent_id:
            return "Invalid agent ID: agent_id is required"

        if not _length_ok(proposal.title, TITLE_MIN, TITLE_MAX):
            return f"Title must be {TITLE_MIN}-{TITLE_MAX} characters"

        if not _length_ok(proposal.description, DESCRIPTION_MIN, DESCRIPTION_MAX):
            return f"Description must be {DESCRIPTION_MIN}-{DESCRIPTION_MAX} characters"

        if not _priority_ok(proposal.priority):
            return f"Priority must be between {PRIORITY_MIN}-{PRIORITY_MAX}"

        if not proposal.proposed_steps:
            return "At least one step is required"

        if len(proposal.proposed_steps) > self.max_steps:
            return f"Maximum {self.max_steps} steps allowed per proposal"

        for position, step in enumerate(proposal.proposed_steps, start=1):
            if step.kind not in self.catalog:
                return f"Invalid step kind at step {position}: {step.kind}"
            if not _length_ok(step.title, STEP_TITLE_MIN, STEP_TITLE_MAX):
                return (
                    f"Step {position} title must be "
                    f"{STEP_TITLE_MIN}-{STEP_TITLE_MAX} characters: {step.title!r}"
                )

        return None
