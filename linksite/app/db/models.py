from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from linksite.app.db.base import Base

DEFAULT_THEME: dict[str, str] = {
    "background": "bg-[#1a1625]",
    "accent": "violet",
    "button_style": "rounded-xl",
    "animation": "scale",
}

SITE_SETTINGS_ID = "site"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_created", "created_at"),
        Index("idx_users_is_admin", "is_admin"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(30), unique=True)
    email: Mapped[str] = mapped_column(String(320), unique=True)
    password_salt: Mapped[str] = mapped_column(String(64))
    password_hash: Mapped[str] = mapped_column(String(128))
    # SHA256 of the current bearer token; None when logged out
    token_hash: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    # Public profile
    display_name: Mapped[str] = mapped_column(String(100))
    profile_image: Mapped[str] = mapped_column(String(500))
    theme: Mapped[dict[str, Any]] = mapped_column(JSON, default=lambda: dict(DEFAULT_THEME))
    # Ordered list of {"id", "title", "url", "enabled"}
    links: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, admin={self.is_admin})>"


class SiteSettings(Base):
    """Site-wide registration policy (single row keyed SITE_SETTINGS_ID)."""

    __tablename__ = "site_settings"

    id: Mapped[str] = mapped_column(String(16), primary_key=True, default=SITE_SETTINGS_ID)
    registration_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    disallowed_domains: Mapped[list[str]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def is_domain_allowed(self, email: str) -> bool:
        """Check the email's domain against the disallowed list."""
        domain = email.rsplit("@", 1)[-1].lower()
        return all(
            domain != blocked and not domain.endswith("." + blocked)
            for blocked in (self.disallowed_domains or [])
        )
