"""
StackIt Backend — Auth Route Handlers
=======================================

What:  Signup, credential sign-in, sign-out and "who am I".
How:   Sign-in issues a JWT, returns it in the body (for API clients) and
       sets it as an HTTP-only cookie (for the browser pages and the route
       guard). Sign-out deletes the cookie; tokens are stateless, so a
       bearer token stays valid until it expires.

    POST /api/auth/signup   (also /api/signup)   201 {success, message, user}
    POST /api/auth/signin                        200 {success, accessToken, tokenType, user}
    POST /api/auth/signout                       200 {success, message}
    GET  /api/auth/me                            200 {success, user}
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.config import settings
from stackit.database import get_db_session
from stackit.models.user import User
from stackit.schemas.common import ErrorResponse, MessageResponse
from stackit.schemas.user import (
    CurrentUserResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserOut,
)
from stackit.security import create_access_token, get_current_user
from stackit.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/auth/signup",
    status_code=201,
    response_model=SignupResponse,
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        409: {"description": "Username or email taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
@router.post("/signup", status_code=201, response_model=SignupResponse, include_in_schema=False)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    user = await user_service.signup(
        db, username=body.username, email=body.email, password=body.password,
    )
    return SignupResponse(message="Account created successfully", user=UserOut.model_validate(user))


@router.post(
    "/auth/signin",
    response_model=SigninResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def signin(
    body: SigninRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SigninResponse:
    user = await user_service.authenticate(db, email=body.email, password=body.password)
    token = create_access_token(user)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_ttl_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    logger.info("User %s signed in", user.id)
    return SigninResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/auth/signout", response_model=MessageResponse, summary="Clear the session cookie")
async def signout(response: Response) -> MessageResponse:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return MessageResponse(message="Signed out")


@router.get(
    "/auth/me",
    response_model=CurrentUserResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="The signed-in user",
)
async def me(user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(user=UserOut.model_validate(user))
