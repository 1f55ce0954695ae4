"""Profile settings of the signed-in user."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError

from linksite.app.api.schemas import ProfileSettings, normalize_username
from linksite.app.db.crud import get_user_by_username, update_profile
from linksite.app.db.dependencies import SessionDep
from linksite.app.middleware.auth import CurrentUser
from linksite.app.middleware.rate_limit import API_BUCKET, rate_limit

router = APIRouter(prefix="/api/settings", tags=["settings"])

MAX_THEME_KEYS = 20


class SettingsUpdate(BaseModel):
    username: Optional[str] = Field(default=None, max_length=64)
    display_name: Optional[str] = Field(default=None, max_length=100)
    profile_image: Optional[str] = Field(default=None, max_length=500)
    theme: Optional[dict[str, str]] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_username(v)

    @field_validator("display_name")
    @classmethod
    def normalize_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("display_name cannot be empty")
        return v

    @field_validator("theme")
    @classmethod
    def check_theme(cls, v: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
        if v is not None and len(v) > MAX_THEME_KEYS:
            raise ValueError(f"theme accepts at most {MAX_THEME_KEYS} keys")
        return v


@router.get("", response_model=ProfileSettings)
async def get_settings(user: CurrentUser) -> ProfileSettings:
    return ProfileSettings.from_user(user)


@router.put(
    "",
    response_model=ProfileSettings,
    dependencies=[Depends(rate_limit(API_BUCKET))],
)
async def put_settings(
    data: SettingsUpdate,
    user: CurrentUser,
    session: SessionDep,
) -> ProfileSettings:
    """Partially update the profile; ``theme`` keys are merged."""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    new_username = updates.get("username")
    if new_username and new_username != user.username:
        existing = await get_user_by_username(session, new_username)
        if existing is not None and existing.id != user.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username is already taken",
            )

    try:
        user = await update_profile(session, user, updates)
    except IntegrityError:
        # Lost a race against a concurrent rename or registration
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username is already taken",
        )
    return ProfileSettings.from_user(user)
