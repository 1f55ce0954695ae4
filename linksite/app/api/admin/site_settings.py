from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from linksite.app.db.crud import get_site_settings, update_site_settings
from linksite.app.db.dependencies import SessionDep
from linksite.app.db.models import SiteSettings
from linksite.app.middleware.rate_limit import AUTH_BUCKET, rate_limit

router = APIRouter()


class SiteSettingsResponse(BaseModel):
    registration_enabled: bool
    disallowed_domains: list[str]

    @classmethod
    def from_model(cls, site: SiteSettings) -> "SiteSettingsResponse":
        return cls(
            registration_enabled=site.registration_enabled,
            disallowed_domains=list(site.disallowed_domains or []),
        )


class SiteSettingsUpdate(BaseModel):
    registration_enabled: Optional[bool] = None
    disallowed_domains: Optional[list[str]] = None


def clean_domains(domains: list[str]) -> list[str]:
    """Keep plausible domain names only, lowercased and de-duplicated."""
    cleaned = [
        domain.strip().lower()
        for domain in domains
        if isinstance(domain, str)
    ]
    valid = [d for d in cleaned if "." in d and " " not in d and len(d) > 3]
    return list(dict.fromkeys(valid))


@router.get("", response_model=SiteSettingsResponse)
async def read_site_settings(session: SessionDep) -> SiteSettingsResponse:
    return SiteSettingsResponse.from_model(await get_site_settings(session))


@router.put(
    "",
    response_model=SiteSettingsResponse,
    dependencies=[Depends(rate_limit(AUTH_BUCKET))],
)
async def write_site_settings(
    data: SiteSettingsUpdate,
    session: SessionDep,
) -> SiteSettingsResponse:
    """Update the registration policy."""
    if data.registration_enabled is None and data.disallowed_domains is None:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    site = await update_site_settings(
        session,
        registration_enabled=data.registration_enabled,
        disallowed_domains=(
            None if data.disallowed_domains is None else clean_domains(data.disallowed_domains)
        ),
    )
    return SiteSettingsResponse.from_model(site)
