"""Request limits for the HTTP surface, on top of slowapi.

Every API route shares one general budget per client address. The generate
and preview routes also share a stricter generation budget. Both budgets are
read from settings when the app is built.
"""
from __future__ import annotations
import logging
import math
import time
from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from demogen.core.config import Settings

log = logging.getLogger(__name__)


class RateLimiter:
    """Holds the slowapi limiter and the two budgets the routes refer to."""

    def __init__(self):
        self.limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=False)
        self._general = "100 per 3600 second"
        self._generation = "20 per 900 second"

    def init_app(self, app: FastAPI, settings: Settings) -> None:
        self._general = settings.general_rate_limit
        self._generation = settings.generation_rate_limit
        self.limiter.enabled = settings.rate_limit_enabled
        self.limiter.reset()
        app.state.limiter = self.limiter
        if settings.rate_limit_enabled:
            log.info("Rate limiting enabled: general %s, generation %s", self._general, self._generation)

    def general_limit(self) -> str:
        return self._general

    def generation_limit(self) -> str:
        return self._generation

    def general(self):
        return self.limiter.shared_limit(self.general_limit, scope="api")

    def generation(self):
        return self.limiter.shared_limit(self.generation_limit, scope="generation")

    def retry_after(self, request: Request, exc: RateLimitExceeded) -> int:
        """Seconds until the exhausted window resets."""
        current = getattr(request.state, "view_rate_limit", None)
        if current is None:
            return exc.limit.limit.get_expiry()
        reset_at, _ = self.limiter.limiter.get_window_stats(current[0], *current[1])
        return max(1, math.ceil(reset_at - time.time()))


rate_limiter = RateLimiter()
