"""Request and response models shared by the API routers."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from linksite.app.db.models import User

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")

# Usernames that would shadow top-level routes of the public page
RESERVED_USERNAMES = frozenset({"admin", "api", "docs", "health", "redoc", "settings"})

MAX_LINKS = 100


def normalize_username(value: str) -> str:
    """Strip whitespace and a leading "@", validate and lowercase."""
    value = value.strip()
    if value.startswith("@"):
        value = value[1:]
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "username must be 3-20 characters: letters, numbers and underscores"
        )
    value = value.lower()
    if value in RESERVED_USERNAMES:
        raise ValueError("username is reserved")
    return value


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    # Lightweight validation without adding extra dependencies.
    local, _, domain = value.partition("@")
    if not local or not domain or "." not in domain or " " in value:
        raise ValueError("invalid email")
    return value


class UserPublic(BaseModel):
    id: str
    username: str
    email: str
    display_name: str
    is_admin: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            display_name=user.display_name,
            is_admin=user.is_admin,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    user: UserPublic
    token: str


class ProfileSettings(BaseModel):
    username: str
    display_name: str
    profile_image: str
    theme: dict[str, Any]

    @classmethod
    def from_user(cls, user: User) -> "ProfileSettings":
        return cls(
            username=user.username,
            display_name=user.display_name,
            profile_image=user.profile_image,
            theme=dict(user.theme or {}),
        )


class LinkItem(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, max_length=64)
    title: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., min_length=1, max_length=2048)
    enabled: bool = True

    @field_validator("title")
    @classmethod
    def normalize_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")) or " " in v:
            raise ValueError("url must be an http(s) address")
        return v
