from typing import Annotated

from fastapi import Depends, Request

from linksite.app.core.security import hash_token
from linksite.app.db.crud import lookup_user_by_token_hash
from linksite.app.db.dependencies import SessionDep
from linksite.app.db.models import User
from linksite.app.exceptions import AuthenticationError, PermissionDeniedError

MAX_TOKEN_LENGTH = 512


def get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        The token string if present, None otherwise
    """
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.replace("Bearer ", "", 1).strip() or None


async def require_user(request: Request, session: SessionDep) -> User:
    """Resolve the bearer token to the signed-in user.

    Raises:
        AuthenticationError: If the token is missing, too long or unknown
    """
    token = get_bearer_token(request)
    if not token:
        raise AuthenticationError("Missing bearer token")

    # Reject before hashing to avoid burning CPU on oversized input
    if len(token) > MAX_TOKEN_LENGTH:
        raise AuthenticationError("Invalid bearer token")

    user = await lookup_user_by_token_hash(session, hash_token(token))
    if user is None:
        raise AuthenticationError("Invalid bearer token")

    request.state.user_id = user.id
    return user


CurrentUser = Annotated[User, Depends(require_user)]


async def require_admin(user: CurrentUser) -> User:
    """Allow only users holding the admin role.

    Raises:
        PermissionDeniedError: If the signed-in user is not an admin
    """
    if not user.is_admin:
        raise PermissionDeniedError()
    return user


AdminUser = Annotated[User, Depends(require_admin)]
