"""
Audit Emitter - best-effort lifecycle events for the agent event log.

Writes go through their own session, after the business transaction has
finished. A failed audit write is logged and dropped; it never fails or
rolls back the operation that triggered it.
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import structlog
from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.models import AgentEvent
from dominion.core.proposals.clock import Clock, utcnow

logger = structlog.get_logger()


class AuditEmitter:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def emit(
        self,
        agent_id: str,
        kind: str,
        title: str,
        details: Optional[dict[str, Any]] = None,
        cost_usd: Optional[Decimal] = None,
    ) -> bool:
        """
        Append an event.

        Returns:
            True if written, False if the write failed (already logged)
        """
        try:
            async with self.session_factory() as session:
                session.add(AgentEvent(
                    id=uuid4(),
                    agent_id=agent_id,
                    kind=kind,
                    title=title[:255],
                    details=to_jsonable_python(details or {}),
                    cost_usd=cost_usd or Decimal("0"),
                    created_at=self.clock(),
                ))
                await session.commit()
        except Exception as exc:
            logger.warning(
                "audit_write_failed",
                agent_id=agent_id,
                kind=kind,
                error=str(exc),
            )
            return False
        return True
