"""
Dominion Ops - API Dependencies
===============================

Shared dependencies for FastAPI endpoints. Tests override
get_session_factory; everything else follows from it.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dominion.core.database import AsyncSessionLocal
from dominion.core.proposals import DatabasePolicyStore, ProposalLifecycleEngine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the application engine."""
    return AsyncSessionLocal


def get_policy_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> DatabasePolicyStore:
    """Policy is read from the database on every request."""
    return DatabasePolicyStore(session_factory)


def get_engine(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    policy_store: DatabasePolicyStore = Depends(get_policy_store),
) -> ProposalLifecycleEngine:
    """Per-request engine; it holds no state worth sharing."""
    return ProposalLifecycleEngine(session_factory, policy_store)


# Type aliases for cleaner endpoint signatures
Engine = Annotated[ProposalLifecycleEngine, Depends(get_engine)]
PolicyStoreDep = Annotated[DatabasePolicyStore, Depends(get_policy_store)]
