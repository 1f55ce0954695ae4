"""Per-client request throttling for sensitive endpoints.

Each named bucket ("auth", "api") has its own policy and its own bounded,
expiring counter cache. The limiter is a fixed-window counter: a client may
make ``max_requests`` allowed requests, after which it is denied until its
counter expires ``window_seconds`` after the last allowed request.

Requests that straddle a window boundary are not smoothed out the way a
sliding window or token bucket would; clients relying on the current
behavior expect exactly this counting.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from fastapi import Request
from starlette.datastructures import Headers

from linksite.app.core.cache import ExpiringLRUCache
from linksite.app.core.config import Settings
from linksite.app.core.logging import get_log_context, get_logger
from linksite.app.exceptions import InvalidBucketError, RateLimitExceededError

logger = get_logger(__name__)

AUTH_BUCKET = "auth"
API_BUCKET = "api"

ANONYMOUS_CLIENT = "anonymous"

DEFAULT_MAX_ENTRIES = 500


@dataclass(frozen=True)
class BucketPolicy:
    """Limit applied to one bucket."""
    name: str
    max_requests: int
    window_seconds: int


def build_bucket_policies(config: Settings) -> dict[str, BucketPolicy]:
    """Build the bucket table from settings.

    "auth" guards credential-sensitive operations with a small allowance over
    a long window; "api" guards general mutations with a larger allowance
    over a short one.
    """
    return {
        AUTH_BUCKET: BucketPolicy(
            name=AUTH_BUCKET,
            max_requests=config.rate_limit_auth_max_requests,
            window_seconds=config.rate_limit_auth_window_seconds,
        ),
        API_BUCKET: BucketPolicy(
            name=API_BUCKET,
            max_requests=config.rate_limit_api_max_requests,
            window_seconds=config.rate_limit_api_window_seconds,
        ),
    }


def get_client_key(headers: Mapping[str, str]) -> str:
    """Derive the rate limit key for a request from its headers.

    Prefers the first (closest to the client) address in X-Forwarded-For,
    then X-Real-IP, then the "anonymous" sentinel. Header names are matched
    case-insensitively.

    Args:
        headers: Request headers (Starlette Headers or a plain mapping)

    Returns:
        Client key string
    """
    if isinstance(headers, Headers):
        # Case-insensitive already, and returns the first of repeated lines
        normalized: Mapping[str, str] = headers
    else:
        normalized = {}
        for k, v in headers.items():
            normalized.setdefault(str(k).lower(), v)

    forwarded = normalized.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = (normalized.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return ANONYMOUS_CLIENT


class RateLimiter:
    """Fixed-window rate limiter owning one counter cache per bucket.

    Construct one instance at process start (see the app lifespan), share it
    through ``app.state.rate_limiter`` and close it at shutdown. Instances are
    independent, which keeps tests isolated.
    """

    def __init__(
        self,
        policies: Mapping[str, BucketPolicy],
        max_entries: int = DEFAULT_MAX_ENTRIES,
        dev_mode: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            policies: Bucket name to policy mapping
            max_entries: Maximum tracked clients per bucket (LRU eviction)
            dev_mode: When True every check is allowed and nothing is counted
            clock: Monotonic time source, replaceable in tests
        """
        self._policies = dict(policies)
        self.dev_mode = dev_mode
        self._caches = {
            name: ExpiringLRUCache(
                max_entries=max_entries,
                ttl=policy.window_seconds,
                clock=clock,
            )
            for name, policy in self._policies.items()
        }

    @classmethod
    def from_settings(cls, config: Settings, **kwargs: Any) -> "RateLimiter":
        return cls(
            build_bucket_policies(config),
            max_entries=config.rate_limit_max_entries,
            dev_mode=config.dev_mode,
            **kwargs,
        )

    @property
    def buckets(self) -> list[str]:
        return list(self._policies)

    def policy(self, bucket: str) -> BucketPolicy:
        """Return the policy for ``bucket``.

        Raises:
            InvalidBucketError: If the bucket is not configured
        """
        try:
            return self._policies[bucket]
        except KeyError:
            raise InvalidBucketError(bucket) from None

    def check_key(self, key: str, bucket: str) -> bool:
        """Record an attempt by ``key`` and decide whether it may proceed.

        Returns:
            True if the request is allowed, False if it is rate limited.
            Denied attempts are not counted.

        Raises:
            InvalidBucketError: If the bucket is not configured
        """
        policy = self.policy(bucket)
        if self.dev_mode:
            return True

        count = self._caches[bucket].increment_below(key, policy.max_requests)
        if count is None:
            logger.warning(
                "Rate limit exceeded",
                extra=get_log_context(
                    client_key=key,
                    bucket=bucket,
                    max_requests=policy.max_requests,
                    window_seconds=policy.window_seconds,
                ),
            )
            return False
        return True

    def check_limit(self, request: Any, bucket: str) -> bool:
        """Decide whether ``request`` may proceed under ``bucket``'s policy.

        Args:
            request: Anything exposing request ``headers``
            bucket: Bucket name ("auth" or "api")

        Returns:
            True if allowed, False if the client must be refused with 429
        """
        # Resolve first so an unknown bucket fails even in dev mode.
        self.policy(bucket)
        if self.dev_mode:
            return True
        return self.check_key(get_client_key(request.headers), bucket)

    def reset(self, bucket: str | None = None) -> None:
        """Forget counters for one bucket, or for all buckets."""
        if bucket is None:
            for cache in self._caches.values():
                cache.clear()
            return
        self.policy(bucket)
        self._caches[bucket].clear()

    def close(self) -> None:
        """Release all counter state at shutdown."""
        self.reset()
        logger.debug("Rate limiter closed")


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter created by the application lifespan."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        raise RuntimeError("Rate limiter is not initialized; is the app lifespan running?")
    return limiter


def rate_limit(bucket: str) -> Callable[[Request], Any]:
    """Build a FastAPI dependency that throttles a route under ``bucket``.

    Usage:
        @router.post("/register", dependencies=[Depends(rate_limit("auth"))])
        async def register(...): ...

    The dependency runs before the handler body, so a refused request never
    reaches the protected mutation.
    """

    async def _check(request: Request) -> None:
        limiter = get_rate_limiter(request)
        if not limiter.check_limit(request, bucket):
            raise RateLimitExceededError(
                bucket=bucket,
                retry_after=limiter.policy(bucket).window_seconds,
            )

    return _check
