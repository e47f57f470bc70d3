"""
Dominion Ops - Core Package
===========================

Core business logic, models, and schemas.
"""

from dominion.core.config import settings
from dominion.core.database import AsyncSessionLocal, Base, init_db

__all__ = ["AsyncSessionLocal", "Base", "init_db", "settings"]
