"""
StackIt Backend — Authentication Primitives
=============================================

What:  Password hashing, session-token issuance/verification, and the
       FastAPI dependency that resolves the signed-in user.
How:   passlib CryptContext (argon2) for credentials; python-jose HS256 JWTs
       for sessions. A token is accepted from `Authorization: Bearer <jwt>`
       or from the HTTP-only session cookie set at sign-in.

Token claims:
    sub       user id (UUID string)
    username  display name, for the frontend
    email     account email
    role      USER | ADMIN (read by the route guard without a DB round-trip)
    iat/exp   issue and expiry timestamps
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.config import settings
from stackit.database import get_db_session
from stackit.exceptions import UnauthenticatedError
from stackit.models.user import User

logger = logging.getLogger(__name__)

pwd_ctx = CryptContext(schemes=["argon2"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_ctx.verify(password, hashed)


def create_access_token(
    user: User,
    ttl_minutes: Optional[int] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Signs a session token for `user`."""
    now = datetime.now(tz=timezone.utc)
    ttl = ttl_minutes if ttl_minutes is not None else settings.access_token_ttl_minutes
    claims: Dict[str, Any] = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=ttl),
    }
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verifies signature and expiry.

    Raises:
        UnauthenticatedError: expired, malformed, or tampered token.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise UnauthenticatedError(message="Session expired, please sign in again") from None
    except JWTError:
        raise UnauthenticatedError(message="Invalid session token") from None
    if not claims.get("sub"):
        raise UnauthenticatedError(message="Invalid session token")
    return claims


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def read_session_claims(request: Request) -> Optional[Dict[str, Any]]:
    """Claims of a valid session on `request`, or None. Never raises."""
    authorization = request.headers.get("Authorization", "")
    token = None
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    token = token or request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except UnauthenticatedError:
        return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    FastAPI dependency resolving the signed-in user.

    Raises:
        UnauthenticatedError: no token, bad token, or the user no longer exists.
    """
    token = extract_token(request, credentials)
    if not token:
        raise UnauthenticatedError()

    claims = decode_access_token(token)
    try:
        user_id = uuid.UUID(claims["sub"])
    except (TypeError, ValueError):
        raise UnauthenticatedError(message="Invalid session token") from None

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Session token for unknown user %s", user_id)
        raise UnauthenticatedError()

    request.state.user_id = str(user.id)
    return user
