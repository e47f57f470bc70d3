"""
Dominion Ops - Catalog and Cost Estimation Tests
================================================

The catalog is static; estimated cost is always recomputed from it.
"""

from decimal import Decimal

import pytest

from dominion.core.proposals import DEFAULT_CATALOG, CostEstimator, StepKind
from dominion.core.schemas import StepTemplate


class TestStepKindCatalog:
    """Lookup behaviour of the default catalog."""

    def test_has_fifteen_kinds(self):
        assert len(DEFAULT_CATALOG) == 15
        assert {spec.kind for spec in DEFAULT_CATALOG} == set(StepKind)

    def test_lookup_by_string_and_enum(self):
        assert DEFAULT_CATALOG["deploy"] is DEFAULT_CATALOG[StepKind.DEPLOY]
        assert DEFAULT_CATALOG["deploy"].base_cost_usd == Decimal("1.50")
        assert DEFAULT_CATALOG["deploy"].risk_level == 5
        assert DEFAULT_CATALOG["deploy"].cap_per_day == 3

    def test_unknown_kind_is_absent(self):
        assert "launch_rocket" not in DEFAULT_CATALOG
        assert None not in DEFAULT_CATALOG
        assert DEFAULT_CATALOG.get("launch_rocket") is None
        with pytest.raises(KeyError):
            DEFAULT_CATALOG["launch_rocket"]

    @pytest.mark.parametrize("kind,cost,risk,cap", [
        ("draft_tweet", "0.15", 1, 20),
        ("execute_command", "0.05", 5, 5),
        ("code_review", "0.80", 4, 8),
        ("notify", "0.10", 3, 12),
    ])
    def test_catalog_values(self, kind, cost, risk, cap):
        spec = DEFAULT_CATALOG[kind]
        assert spec.base_cost_usd == Decimal(cost)
        assert spec.risk_level == risk
        assert spec.cap_per_day == cap


class TestCostEstimator:

    def test_sums_base_costs(self):
        steps = [
            StepTemplate(kind="draft_tweet", title="Draft"),
            StepTemplate(kind="write_content", title="Write"),
        ]
        assert CostEstimator().estimate(steps) == Decimal("0.60")

    def test_repeated_kinds_each_count(self):
        steps = [StepTemplate(kind="crawl", title="Crawl")] * 4
        assert CostEstimator().estimate(steps) == Decimal("1.00")

    def test_exact_decimal_arithmetic(self):
        """0.15 + 0.45 must not drift the way binary floats do."""
        steps = [
            StepTemplate(kind="draft_tweet", title="Draft"),
            StepTemplate(kind="write_content", title="Write"),
            StepTemplate(kind="notify", title="Ping"),
        ]
        assert str(CostEstimator().estimate(steps)) == "0.70"

    def test_empty_is_zero(self):
        assert CostEstimator().estimate([]) == Decimal("0")
