"""Core application modules."""
from pharmastock.core.config import settings, get_settings
from pharmastock.core.database import Base, get_db, get_db_context, init_db, close_db

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
]
