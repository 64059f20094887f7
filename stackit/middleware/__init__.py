"""
StackIt Backend — Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [Route Guard]
            → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later layer and error body can read it
    2. Logging: sees the final status, including 429s and redirects
    3. Rate Limit: rejects write floods before any auth or DB work
    4. Route Guard: page redirects only; /api passes straight through
"""

from stackit.middleware.logging import RequestLoggingMiddleware
from stackit.middleware.rate_limit import RateLimitMiddleware
from stackit.middleware.request_id import RequestIDMiddleware, request_id_var
from stackit.middleware.route_guard import RouteGuardMiddleware

__all__ = [
    "RateLimitMiddleware",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "RouteGuardMiddleware",
    "request_id_var",
]
