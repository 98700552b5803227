"""
Rate limiting for the API.

Each client IP gets one sliding window per configured rule. A request is
counted against every rule, and rejected with 429 as soon as one of them is
exhausted.
"""

import math
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from library_api.models import ErrorResponse

logger = structlog.get_logger(__name__)

PERIOD_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
# Full sweep of expired windows every this many checks
PRUNE_INTERVAL = 1000
RULE_PATTERN = re.compile(r"^\s*(\d+)\s*/\s*(\d*)\s*([smhd])\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class RateLimitRule:
    """At most ``limit`` requests per ``period`` seconds."""
    limit: int
    period: int


def parse_rate_limit_rules(rules: str) -> List[RateLimitRule]:
    """
    Parse rules like "1000/5m,200/10s".

    Raises:
        ValueError: on a malformed rule
    """
    parsed = []
    for rule in rules.split(","):
        if not rule.strip():
            continue
        match = RULE_PATTERN.match(rule)
        if not match:
            raise ValueError(f"Invalid rate limit rule '{rule.strip()}'")
        limit, count, unit = match.groups()
        period = int(count or 1) * PERIOD_UNITS[unit.lower()]
        if int(limit) < 1 or period < 1:
            raise ValueError(f"Invalid rate limit rule '{rule.strip()}'")
        parsed.append(RateLimitRule(limit=int(limit), period=period))
    return parsed


class RateLimiter:
    """Handles rate limiting for API requests."""

    def __init__(self, rules: List[RateLimitRule], clock: Callable[[], float] = time.time):
        self.rules = rules
        self.clock = clock
        self.requests: Dict[Tuple[str, RateLimitRule], List[float]] = {}
        self._checks = 0

    def _window(self, client_id: str, rule: RateLimitRule, current_time: float) -> List[float]:
        key = (client_id, rule)
        # Drop requests older than the rule's period
        window = [req_time for req_time in self.requests.get(key, []) if current_time - req_time < rule.period]
        if window:
            self.requests[key] = window
        else:
            self.requests.pop(key, None)
        return window

    def check_rate_limit(self, client_id: str) -> Tuple[bool, Dict]:
        """
        Count a request for the client if every rule allows it.

        Args:
            client_id: Client identifier (remote address)

        Returns:
            (allowed, rate limit info for the tightest rule)
        """
        current_time = self.clock()
        self._checks += 1
        if self._checks % PRUNE_INTERVAL == 0:
            self.prune(current_time)

        windows = [(rule, self._window(client_id, rule, current_time)) for rule in self.rules]

        for rule, window in windows:
            if len(window) >= rule.limit:
                retry_after = max(1, math.ceil(window[0] + rule.period - current_time))
                return False, {
                    "rate_limit": rule.limit,
                    "requests_remaining": 0,
                    "reset_time": window[0] + rule.period,
                    "retry_after": retry_after
                }

        for rule, window in windows:
            window.append(current_time)
            self.requests[(client_id, rule)] = window

        return True, self._info(windows)

    def _info(self, windows) -> Dict:
        rule, window = min(windows, key=lambda item: item[0].limit - len(item[1]))
        return {
            "rate_limit": rule.limit,
            "requests_remaining": max(0, rule.limit - len(window)),
            "reset_time": (window[0] if window else self.clock()) + rule.period
        }

    def prune(self, current_time: Optional[float] = None) -> None:
        """Forget windows whose requests have all expired."""
        current_time = self.clock() if current_time is None else current_time
        for client_id, rule in list(self.requests):
            self._window(client_id, rule, current_time)

    def reset(self) -> None:
        self.requests.clear()


def get_rate_limit_headers(rate_info: Dict) -> Dict[str, str]:
    """
    Get rate limit headers for response.

    Args:
        rate_info: Info returned by RateLimiter.check_rate_limit

    Returns:
        Dictionary with rate limit headers
    """
    headers = {
        "X-RateLimit-Limit": str(rate_info["rate_limit"]),
        "X-RateLimit-Remaining": str(rate_info["requests_remaining"]),
        "X-RateLimit-Reset": str(int(rate_info["reset_time"]))
    }
    if "retry_after" in rate_info:
        headers["Retry-After"] = str(rate_info["retry_after"])
    return headers


class ThrottlingMiddleware(BaseHTTPMiddleware):
    """Applies a RateLimiter to every request, keyed by client IP."""

    def __init__(self, app, limiter: RateLimiter, exempt_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.limiter = limiter
        self.exempt_paths = set(exempt_paths or [])

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths or not self.limiter.rules:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        allowed, rate_info = self.limiter.check_rate_limit(client_id)
        headers = get_rate_limit_headers(rate_info)

        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                client=client_id,
                path=request.url.path,
                limit=rate_info["rate_limit"],
                retry_after=rate_info["retry_after"]
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=ErrorResponse(
                    error="Too many requests",
                    detail=f"Rate limit of {rate_info['rate_limit']} requests exceeded",
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS
                ).model_dump(),
                headers=headers
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
