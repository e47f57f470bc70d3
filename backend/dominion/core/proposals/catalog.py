"""
Step Kind Catalog - static cost/risk/cap table per operation kind.
"""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Optional


class StepKind(str, enum.Enum):
    """Operation kinds an agent may propose."""
    DRAFT_TWEET = "draft_tweet"
    CRAWL = "crawl"
    ANALYZE = "analyze"
    WRITE_CONTENT = "write_content"
    SCAN_EIP = "scan_eip"
    CODE_REVIEW = "code_review"
    RESEARCH = "research"
    MONITOR = "monitor"
    NOTIFY = "notify"
    EXECUTE_COMMAND = "execute_command"
    GENERATE_IMAGE = "generate_image"
    PROCESS_DATA = "process_data"
    VALIDATE = "validate"
    DEPLOY = "deploy"
    TEST = "test"


@dataclass(frozen=True)
class StepKindSpec:
    """Catalog entry for one step kind."""
    kind: StepKind
    base_cost_usd: Decimal
    risk_level: int  # 1 (harmless) - 5 (dangerous)
    cap_per_day: int


def _spec(kind: StepKind, cost: str, risk: int, cap: int) -> StepKindSpec:
    return StepKindSpec(kind=kind, base_cost_usd=Decimal(cost), risk_level=risk, cap_per_day=cap)


class StepKindCatalog:
    """
    Read-only lookup of step kinds.

    Lookups accept either a StepKind or its string value; unknown kinds
    are simply absent (`kind in catalog` is False, `get` returns None).
    """

    def __init__(self, specs: list[StepKindSpec]):
        self._specs: dict[str, StepKindSpec] = {s.kind.value: s for s in specs}

    def __contains__(self, kind: object) -> bool:
        return self._key(kind) in self._specs

    def __iter__(self) -> Iterator[StepKindSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def get(self, kind: object) -> Optional[StepKindSpec]:
        return self._specs.get(self._key(kind))

    def __getitem__(self, kind: object) -> StepKindSpec:
        spec = self.get(kind)
        if spec is None:
            raise KeyError(f"Unknown step kind: {kind}")
        return spec

    @staticmethod
    def _key(kind: object) -> Optional[str]:
        if isinstance(kind, StepKind):
            return kind.value
        return kind if isinstance(kind, str) else None


DEFAULT_CATALOG = StepKindCatalog([
    _spec(StepKind.DRAFT_TWEET, "0.15", 1, 20),
    _spec(StepKind.CRAWL, "0.25", 1, 50),
    _spec(StepKind.ANALYZE, "0.35", 1, 30),
    _spec(StepKind.WRITE_CONTENT, "0.45", 2, 15),
    _spec(StepKind.SCAN_EIP, "0.30", 1, 25),
    _spec(StepKind.CODE_REVIEW, "0.80", 4, 8),
    _spec(StepKind.RESEARCH, "0.50", 2, 20),
    _spec(StepKind.MONITOR, "0.20", 1, 40),
    _spec(StepKind.NOTIFY, "0.10", 3, 12),
    _spec(StepKind.EXECUTE_COMMAND, "0.05", 5, 5),
    _spec(StepKind.GENERATE_IMAGE, "0.75", 2, 10),
    _spec(StepKind.PROCESS_DATA, "0.40", 2, 25),
    _spec(StepKind.VALIDATE, "0.30", 2, 20),
    _spec(StepKind.DEPLOY, "1.50", 5, 3),
    _spec(StepKind.TEST, "0.60", 3, 15),
])
