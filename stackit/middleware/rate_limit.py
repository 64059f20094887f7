"""
StackIt Backend — Rate Limiting Middleware
============================================

What:  Per-IP sliding-window limit on write requests.
How:   Keeps the timestamps of each IP's recent POST/PUT/PATCH/DELETE
       requests in memory. When the window already holds the maximum, the
       request is answered with 429 and a Retry-After header. Reads (the
       public feed, single questions, health) are never counted.

Algorithm: Sliding Window Log
    1. Drop timestamps older than `window` seconds
    2. If len >= limit → 429, Retry-After = until the oldest one expires
    3. Else record now and continue

Scope:
    State is per process. Several uvicorn workers each keep their own
    window, so the effective limit is limit × workers.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from stackit.config import settings
from stackit.exceptions import RateLimitExceededError
from stackit.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in LIMITED_METHODS or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self.hit(client_ip, time.time())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for IP %s: %d writes in %ds window",
                client_ip, self.max_requests, self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "requestId": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)

    def hit(self, client_ip: str, now: float) -> None:
        """
        Records one write for `client_ip`.

        Raises:
            RateLimitExceededError: the window is full (nothing is recorded).
        """
        window_start = now - self.window_seconds
        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after)

        timestamps.append(now)

        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
