"""Ordered outbound links of the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from linksite.app.api.schemas import MAX_LINKS, LinkItem
from linksite.app.db.crud import replace_links
from linksite.app.db.dependencies import SessionDep
from linksite.app.middleware.auth import CurrentUser
from linksite.app.middleware.rate_limit import API_BUCKET, rate_limit

router = APIRouter(prefix="/api/links", tags=["links"])


@router.get("", response_model=list[LinkItem])
async def get_links(user: CurrentUser) -> list[LinkItem]:
    return [LinkItem.model_validate(link) for link in user.links or []]


@router.post(
    "",
    response_model=list[LinkItem],
    dependencies=[Depends(rate_limit(API_BUCKET))],
)
async def save_links(
    links: list[LinkItem],
    user: CurrentUser,
    session: SessionDep,
) -> list[LinkItem]:
    """Replace the whole list; the request order is the display order."""
    if len(links) > MAX_LINKS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {MAX_LINKS} links are allowed",
        )
    ids = [link.id for link in links]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate link id")

    saved = await replace_links(session, user, [link.model_dump() for link in links])
    return [LinkItem.model_validate(link) for link in saved]
