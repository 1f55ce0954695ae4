"""User CRUD operations."""
import uuid
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linksite.app.core.config import settings
from linksite.app.core.security import generate_token, hash_password, hash_token
from linksite.app.db.models import DEFAULT_THEME, User


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    """Find a user by username (case-insensitive, usernames are stored lowercase)."""
    result = await session.execute(
        select(User).where(User.username == username.lower())
    )
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.email == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def lookup_user_by_token_hash(
    session: AsyncSession,
    token_hash: str
) -> Optional[User]:
    """Find the user owning a bearer token.

    Args:
        session: Database session from FastAPI dependency
        token_hash: SHA256 digest of the presented token

    Returns:
        User object if found, None otherwise
    """
    result = await session.execute(select(User).where(User.token_hash == token_hash))
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession) -> List[User]:
    result = await session.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def count_admins(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(User).where(User.is_admin.is_(True))
    )
    return int(result.scalar_one())


async def create_user(
    session: AsyncSession,
    username: str,
    email: str,
    password: str,
) -> User:
    """Create a user with a default public profile.

    The caller is responsible for checking uniqueness first; a race is
    still caught by the unique constraints when the session flushes.
    """
    salt, password_hash = hash_password(password)
    user = User(
        id=str(uuid.uuid4()),
        username=username.lower(),
        email=email.strip().lower(),
        password_salt=salt,
        password_hash=password_hash,
        is_admin=False,
        display_name=username,
        profile_image=settings.default_profile_image,
        theme=dict(DEFAULT_THEME),
        links=[],
    )
    session.add(user)
    await session.flush()
    return user


async def issue_token(session: AsyncSession, user: User) -> str:
    """Issue a new bearer token for ``user``, replacing any previous one.

    Returns:
        The raw token. Only its hash is stored.
    """
    token = generate_token()
    user.token_hash = hash_token(token)
    await session.flush()
    return token


async def update_profile(
    session: AsyncSession,
    user: User,
    updates: dict[str, Any],
) -> User:
    """Apply a partial profile update.

    ``theme`` is merged key by key into the stored theme; other fields are
    replaced.
    """
    if "theme" in updates and updates["theme"] is not None:
        user.theme = {**(user.theme or DEFAULT_THEME), **updates["theme"]}
    for field in ("display_name", "profile_image", "username"):
        if updates.get(field) is not None:
            setattr(user, field, updates[field])
    await session.flush()
    return user


async def replace_links(
    session: AsyncSession,
    user: User,
    links: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Replace the user's ordered link list."""
    user.links = links
    await session.flush()
    return user.links


async def set_admin(session: AsyncSession, user: User, is_admin: bool) -> User:
    user.is_admin = is_admin
    await session.flush()
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    await session.delete(user)
    await session.flush()
