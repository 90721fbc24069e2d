"""
Recipedium Core Module
Central configuration and utilities
"""

from .config import settings
from .database import Base, Database, get_db

__all__ = [
    "settings",
    "Base",
    "Database",
    "get_db",
]
