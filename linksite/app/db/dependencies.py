"""Database dependencies for FastAPI dependency injection.

Usage:
    from linksite.app.db.dependencies import SessionDep

    @router.get("/api/links")
    async def get_links(session: SessionDep):
        ...
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from linksite.app.db.async_session import get_db

SessionDep = Annotated[AsyncSession, Depends(get_db)]

__all__ = ["SessionDep"]
