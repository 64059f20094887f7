"""
StackIt Backend — Route Guard Middleware
==========================================

What:  Redirects page requests according to the visitor's session, before
       any page handler or static file is served.
How:   Reads the session token (Bearer header or cookie) without touching the
       database; the role claim in the token is enough for the admin check.

Rules (first match wins):
    signed in,  path is /signin, /signup or /           → 302 /feed
    anonymous,  path under a protected prefix            → 302 /signin
    signed in,  path under /admin, role is not ADMIN     → 302 /

/api/* is never redirected; API routes answer 401/403 themselves.
"""

import logging
from typing import Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from stackit.models.user import UserRole
from stackit.security import read_session_claims

logger = logging.getLogger(__name__)

AUTH_PAGES = frozenset({"/signin", "/signup", "/"})
PROTECTED_PREFIXES: Tuple[str, ...] = ("/feed", "/question", "/profile", "/notification", "/admin")
ADMIN_PREFIX = "/admin"
API_PREFIX = "/api"


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _under_any(path: str, prefixes: Iterable[str]) -> bool:
    return any(_under(path, prefix) for prefix in prefixes)


def resolve_redirect(path: str, claims: Optional[dict]) -> Optional[str]:
    """Target of the redirect for `path`, or None to let the request through."""
    if _under(path, API_PREFIX):
        return None
    if claims:
        if path in AUTH_PAGES:
            return "/feed"
        if _under(path, ADMIN_PREFIX) and claims.get("role") != UserRole.ADMIN.value:
            return "/"
        return None
    if _under_any(path, PROTECTED_PREFIXES):
        return "/signin"
    return None


class RouteGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        target = resolve_redirect(path, read_session_claims(request))
        if target is None:
            return await call_next(request)
        logger.debug("Route guard: %s → %s", path, target)
        return RedirectResponse(url=target, status_code=302)
