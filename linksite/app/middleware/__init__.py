"""Middleware and request dependencies for linksite."""

from linksite.app.middleware.auth import AdminUser, CurrentUser, require_admin, require_user
from linksite.app.middleware.rate_limit import (
    API_BUCKET,
    AUTH_BUCKET,
    BucketPolicy,
    RateLimiter,
    get_client_key,
    get_rate_limiter,
    rate_limit,
)
from linksite.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "AdminUser",
    "CurrentUser",
    "require_admin",
    "require_user",
    "API_BUCKET",
    "AUTH_BUCKET",
    "BucketPolicy",
    "RateLimiter",
    "get_client_key",
    "get_rate_limiter",
    "rate_limit",
    "RequestIdMiddleware",
    "get_request_id",
]
