from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from linksite.app.api.schemas import UserPublic
from linksite.app.core.logging import get_log_context, get_logger
from linksite.app.db.crud import count_admins, delete_user, get_user_by_id, list_users, set_admin
from linksite.app.db.dependencies import SessionDep
from linksite.app.middleware.auth import AdminUser
from linksite.app.middleware.rate_limit import AUTH_BUCKET, rate_limit

logger = get_logger(__name__)

router = APIRouter()


class AdminFlagUpdate(BaseModel):
    is_admin: bool


@router.get("", response_model=list[UserPublic])
async def get_users(session: SessionDep) -> list[UserPublic]:
    """List all users."""
    return [UserPublic.from_user(user) for user in await list_users(session)]


@router.delete("/{user_id}", dependencies=[Depends(rate_limit(AUTH_BUCKET))])
async def remove_user(user_id: str, admin: AdminUser, session: SessionDep) -> dict:
    """Delete a user. The last remaining admin cannot be deleted."""
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_admin and await count_admins(session) <= 1:
        raise HTTPException(status_code=400, detail="Cannot delete the last admin user")

    await delete_user(session, user)
    logger.info(
        "User deleted",
        extra=get_log_context(user_id=admin.id, deleted_user_id=user_id),
    )
    return {"success": True}


@router.post(
    "/{user_id}/admin",
    response_model=UserPublic,
    dependencies=[Depends(rate_limit(AUTH_BUCKET))],
)
async def update_admin_flag(
    user_id: str,
    data: AdminFlagUpdate,
    admin: AdminUser,
    session: SessionDep,
) -> UserPublic:
    """Grant or revoke the admin role."""
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_admin and not data.is_admin and await count_admins(session) <= 1:
        raise HTTPException(status_code=400, detail="Cannot revoke the last admin user")

    await set_admin(session, user, data.is_admin)
    logger.info(
        "Admin flag changed",
        extra=get_log_context(user_id=admin.id, target_user_id=user_id, is_admin=data.is_admin),
    )
    return UserPublic.from_user(user)
