"""API endpoints package for linksite."""

from linksite.app.api.admin.router import router as admin_router
from linksite.app.api.auth import router as auth_router
from linksite.app.api.links import router as links_router
from linksite.app.api.profile import public_router as public_profile_router
from linksite.app.api.profile import router as profile_router
from linksite.app.api.settings import router as settings_router

__all__ = [
    "admin_router",
    "auth_router",
    "links_router",
    "profile_router",
    "public_profile_router",
    "settings_router",
]
