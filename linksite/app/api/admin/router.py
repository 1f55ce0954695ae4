from fastapi import APIRouter, Depends

from linksite.app.middleware.auth import require_admin

# Admin check runs before each route's own dependencies, so rejected
# non-admins never consume rate limit allowance.
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

from . import site_settings, users  # noqa: E402

router.include_router(users.router, prefix="/users", tags=["admin-users"])
router.include_router(site_settings.router, prefix="/settings", tags=["admin-settings"])
