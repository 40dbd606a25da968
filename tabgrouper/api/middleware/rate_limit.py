"""Rate limiting middleware for the TabGrouper API

Per-client request limiting in front of every route except health checks.
This is separate from the analysis cooldown gate: the gate spaces out
provider calls, this keeps a misbehaving client from flooding the API.
"""

from __future__ import annotations

import ipaddress
import time
from collections.abc import Awaitable, Callable

from cachetools import TTLCache
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from tabgrouper.config import RATE_LIMIT_MAX_CLIENTS, RATE_LIMIT_RPM
from tabgrouper.observability.telemetry import counter, log_event

EXEMPT_PATHS = frozenset({"/", "/health"})
WINDOW_SECONDS = 60


def client_address(request: Request) -> str:
    """
    Identify the caller for rate limiting.

    The first X-Forwarded-For hop wins, but only if it parses as an IP
    address; anything else falls back to the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        try:
            return str(ipaddress.ip_address(first_hop))
        except ValueError:
            pass
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding one-minute window per client address.

    Windows live in a TTLCache, so idle clients expire and the number of
    tracked clients is capped at max_clients.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = RATE_LIMIT_RPM,
        max_clients: int = RATE_LIMIT_MAX_CLIENTS,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        # {client: [request timestamps inside the window]}
        self.minute_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=max_clients, ttl=WINDOW_SECONDS * 2
        )

    def _too_many_requests(self) -> JSONResponse:
        counter("api.rate_limited")
        log_event("api.rate_limit.exceeded", client_count=len(self.minute_buckets))
        return JSONResponse(
            status_code=429,
            content={
                "ok": False,
                "error": f"Rate limit exceeded. Maximum {self.requests_per_minute} requests per minute.",
                "kind": "api_rate_limited",
                "retry_after": WINDOW_SECONDS,
            },
            headers={"Retry-After": str(WINDOW_SECONDS)},
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client = client_address(request)
        now = time.time()
        window = [ts for ts in self.minute_buckets.get(client, ()) if now - ts < WINDOW_SECONDS]

        if len(window) >= self.requests_per_minute:
            self.minute_buckets[client] = window
            return self._too_many_requests()

        window.append(now)
        self.minute_buckets[client] = window

        response = await call_next(request)
        response.headers["X-RateLimit-Limit-Minute"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining-Minute"] = str(self.requests_per_minute - len(window))
        return response
