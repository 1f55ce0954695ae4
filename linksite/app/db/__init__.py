"""Database package for linksite.

This package provides:
- Database models (User, SiteSettings)
- Asynchronous session management
- CRUD operations
- FastAPI dependency injection support
"""

from linksite.app.db.base import Base
from linksite.app.db.models import SiteSettings, User
from linksite.app.db.async_session import (
    close_async_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
    get_db,
)
from linksite.app.db.dependencies import SessionDep

__all__ = [
    "Base",
    "SiteSettings",
    "User",
    "close_async_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
    "get_db",
    "SessionDep",
]
