"""Public profile pages.

Served both under ``/api/profile/{username}`` and at the site root as
``/{username}``; the root route must be registered after every other
top-level route so it does not shadow them.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Response

from linksite.app.api.schemas import LinkItem, ProfileSettings
from linksite.app.core.config import settings
from linksite.app.db.crud import get_user_by_username
from linksite.app.db.dependencies import SessionDep

router = APIRouter(prefix="/api/profile", tags=["profile"])
public_router = APIRouter(tags=["profile"])

PUBLIC_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=60"


async def _load_public_profile(
    username: str,
    session: SessionDep,
    response: Response,
) -> dict[str, Any]:
    user = await get_user_by_username(session, username)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail="User not found",
            headers={"Cache-Control": "no-cache"},
        )

    response.headers["Cache-Control"] = (
        "no-cache" if settings.dev_mode else PUBLIC_CACHE_CONTROL
    )
    links = [
        LinkItem.model_validate(link).model_dump()
        for link in user.links or []
        if link.get("enabled", True)
    ]
    return {
        "profile": ProfileSettings.from_user(user).model_dump(),
        "links": links,
    }


@router.get("/{username}")
async def get_profile(username: str, session: SessionDep, response: Response) -> dict[str, Any]:
    """Public profile data for ``username`` (enabled links only)."""
    return await _load_public_profile(username, session, response)


@public_router.get("/{username}")
async def public_page(username: str, session: SessionDep, response: Response) -> dict[str, Any]:
    return await _load_public_profile(username, session, response)
