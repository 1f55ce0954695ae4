"""Account registration and login.

Both endpoints are credential-sensitive and throttled under the "auth"
bucket. Registration honours the site-wide policy managed by admins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError

from linksite.app.api.schemas import AuthResponse, UserPublic, normalize_email, normalize_username
from linksite.app.core.logging import get_log_context, get_logger
from linksite.app.core.security import verify_password
from linksite.app.db.crud import (
    create_user,
    get_site_settings,
    get_user_by_email,
    get_user_by_username,
    issue_token,
)
from linksite.app.db.dependencies import SessionDep
from linksite.app.exceptions import AuthenticationError, RegistrationClosedError
from linksite.app.middleware.rate_limit import AUTH_BUCKET, rate_limit

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip().lower()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(AUTH_BUCKET))],
)
async def register(data: RegisterRequest, session: SessionDep) -> AuthResponse:
    """Create an account with a default profile and sign it in."""
    site = await get_site_settings(session)
    if not site.registration_enabled:
        raise RegistrationClosedError("Registration is currently disabled")
    if not site.is_domain_allowed(data.email):
        raise RegistrationClosedError("Registration from this email domain is not allowed")

    if await get_user_by_username(session, data.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
    if await get_user_by_email(session, data.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    try:
        user = await create_user(session, data.username, data.email, data.password)
    except IntegrityError:
        # Lost a race against a concurrent registration
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already registered",
        )
    token = await issue_token(session, user)

    logger.info("User registered", extra=get_log_context(user_id=user.id))
    return AuthResponse(user=UserPublic.from_user(user), token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit(AUTH_BUCKET))],
)
async def login(data: LoginRequest, session: SessionDep) -> AuthResponse:
    """Exchange email and password for a fresh bearer token."""
    user = await get_user_by_email(session, data.email)
    if user is None or not verify_password(data.password, user.password_salt, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    token = await issue_token(session, user)
    return AuthResponse(user=UserPublic.from_user(user), token=token)
