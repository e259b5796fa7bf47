"""
Rate limiting for Academia Backend
Fixed-window counters persisted in the ``rate_limits`` table
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends
from supabase import Client

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.database import get_supabase
from app.core.exceptions import RateLimitExceeded
from app.domain.rate_limit import RateLimitDecision
from app.repositories.rate_limit_repository import RateLimitRepository


logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a minute."


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class RateLimiter:
    """
    Fixed-window rate limiter keyed by ``<prefix>:<identifier>``.

    Each key owns at most one live row: the first request of a window opens
    it with count 1, later requests increment it until max_requests is
    reached. The read-modify-write is not atomic, so concurrent requests can
    overshoot the limit slightly.

    Storage failures never block a request (fail-open).
    """

    def __init__(
        self,
        repository: RateLimitRepository,
        key_prefix: str,
        max_requests: int = 10,
        window_seconds: int = 60,
        clock: Callable[[], datetime] = None
    ):
        self.repository = repository
        self.key_prefix = key_prefix
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def key_for(self, identifier: str) -> str:
        return f"{self.key_prefix}:{identifier}"

    def check_limit(self, identifier: str) -> RateLimitDecision:
        """
        Count one request for identifier.

        Returns:
            RateLimitDecision(allowed, remaining, reset_at)
        """
        key = self.key_for(identifier)
        now = self._clock()

        try:
            record = self.repository.find_window(key, now - self.window)

            if not record:
                self.repository.open_window(key, now, now + self.window)
                return RateLimitDecision(
                    allowed=True,
                    remaining=self.max_requests - 1,
                    reset_at=now + self.window
                )

            count = int(record.get("count") or 0)
            reset_at = _parse_timestamp(record.get("expires_at")) or now + self.window

            if count >= self.max_requests:
                logger.warning(f"Rate limit hit for {key} ({count}/{self.max_requests})")
                return RateLimitDecision(allowed=False, remaining=0, reset_at=reset_at)

            self.repository.set_count(record["id"], count + 1)

            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests - count - 1,
                reset_at=reset_at
            )

        except Exception as e:
            logger.error(f"Rate limit check failed for {key}: {e}")
            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests,
                reset_at=now + self.window
            )


def rate_limit(key_prefix: str, max_requests: int = 10, window_seconds: int = 60):
    """
    Dependency factory for per-user rate limiting of an endpoint.

    Usage:
        @router.post("/validate")
        async def validate(
            user: AuthenticatedUser = Depends(rate_limit("order", max_requests=10))
        ):
            ...

    Raises RateLimitExceeded (429 with Retry-After) when the caller is over budget.
    """
    async def rate_limit_check(
        user: AuthenticatedUser = Depends(get_current_user),
        sb: Client = Depends(get_supabase)
    ) -> AuthenticatedUser:
        limiter = RateLimiter(
            RateLimitRepository(sb),
            key_prefix=key_prefix,
            max_requests=max_requests,
            window_seconds=window_seconds
        )
        decision = limiter.check_limit(user.id)

        if not decision.allowed:
            raise RateLimitExceeded(RATE_LIMIT_MESSAGE, retry_after=window_seconds)

        return user

    return rate_limit_check
