"""
api/limiter.py -- Shared slowapi rate limiter and the two request limits.

Limits are FastAPI dependencies rather than SlowAPIMiddleware route lookups,
so they hold whatever shape app.routes takes after include_router(). Router
and route level dependencies resolve before the endpoint's own, so a limit
is counted before the bearer token is checked: failed token guesses use up
the budget too.

  api_limit    -- API_RATE_LIMIT per client IP, one bucket for all of /api
  login_limit  -- LOGIN_RATE_LIMIT per client IP, one bucket shared by
                  register and login, on top of api_limit

Limit strings are read from settings on every request. Counters live in the
slowapi Limiter's storage (memory:// by default), so limiter.reset() clears
them.
"""

from __future__ import annotations

import math
import time

from fastapi import Request
from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings
from core.errors import RateLimitedError

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)


class RateLimit:
    """Dependency that spends one hit from a named bucket or raises 429."""

    def __init__(self, scope: str, setting: str) -> None:
        self.scope = scope
        self.setting = setting

    def __call__(self, request: Request) -> None:
        if not limiter.enabled:
            return
        item = parse(getattr(get_settings(), self.setting))
        key = get_remote_address(request)
        if limiter.limiter.hit(item, self.scope, key):
            return
        reset_at, _ = limiter.limiter.get_window_stats(item, self.scope, key)
        raise RateLimitedError(retry_after=max(1, math.ceil(reset_at - time.time())))


api_limit = RateLimit("api", "api_rate_limit")
login_limit = RateLimit("login", "login_rate_limit")
