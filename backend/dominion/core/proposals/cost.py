"""
Cost Estimator - catalog-derived cost of a proposal.
"""

from decimal import Decimal
from typing import Iterable

from dominion.core.proposals.catalog import DEFAULT_CATALOG, StepKindCatalog
from dominion.core.schemas import StepTemplate


class CostEstimator:
    """Sums catalog base costs; any client-supplied estimate is ignored."""

    def __init__(self, catalog: StepKindCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def estimate(self, steps: Iterable[StepTemplate]) -> Decimal:
        """
        Estimate the cost of a list of validated steps.

        Raises:
            KeyError: If a step kind is not in the catalog (validate first)
        """
        return sum(
            (self.catalog[step.kind].base_cost_usd for step in steps),
            Decimal("0"),
        )
