"""
Gate and decision results.

Business outcomes travel as these values; exceptions are reserved for
infrastructure faults (see errors.py).
"""

from dataclasses import dataclass
from typing import Optional

from dominion.core.schemas import RejectionCode


@dataclass(frozen=True)
class GateResult:
    """Result of a quota or cap gate."""
    allowed: bool
    code: Optional[RejectionCode] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "GateResult":
        return cls(allowed=True)

    @classmethod
    def deny(cls, code: RejectionCode, reason: str) -> "GateResult":
        return cls(allowed=False, code=code, reason=reason)


@dataclass(frozen=True)
class ApprovalDecision:
    """Auto-approval verdict. Not approved means deferred to manual review."""
    approved: bool
    reason: Optional[str] = None
    code: Optional[RejectionCode] = None

    @classmethod
    def approve(cls) -> "ApprovalDecision":
        return cls(approved=True)

    @classmethod
    def defer(cls, reason: str, code: Optional[RejectionCode] = None) -> "ApprovalDecision":
        return cls(approved=False, reason=reason, code=code)
