"""Site-wide settings operations."""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from linksite.app.db.models import SITE_SETTINGS_ID, SiteSettings


async def get_site_settings(session: AsyncSession) -> SiteSettings:
    """Return the site settings row, or unsaved defaults when none exists."""
    result = await session.execute(
        select(SiteSettings).where(SiteSettings.id == SITE_SETTINGS_ID)
    )
    site = result.scalar_one_or_none()
    if site is None:
        return SiteSettings(
            id=SITE_SETTINGS_ID,
            registration_enabled=True,
            disallowed_domains=[],
        )
    return site


async def update_site_settings(
    session: AsyncSession,
    registration_enabled: Optional[bool] = None,
    disallowed_domains: Optional[list[str]] = None,
) -> SiteSettings:
    """Upsert the site settings row with the given fields."""
    site = await get_site_settings(session)
    if registration_enabled is not None:
        site.registration_enabled = registration_enabled
    if disallowed_domains is not None:
        site.disallowed_domains = disallowed_domains
    session.add(site)
    await session.flush()
    return site
