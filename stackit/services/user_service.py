"""
StackIt Backend — User Service
================================

What:  Account creation and credential checks.
How:   Checks username/email availability, hashes the password with argon2
       and inserts the row. A unique-constraint race at INSERT time is mapped
       to the same 409 as the pre-check. argon2 is CPU-bound, so hashing and
       verification run in the threadpool, off the event loop.
Who:   Called by the /api/auth route handlers.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from stackit.exceptions import ConflictError, DatabaseError, UnauthenticatedError
from stackit.models.user import User, UserRole
from stackit.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """Stateless; receives the session per call."""

    async def signup(self, db: AsyncSession, username: str, email: str, password: str) -> User:
        """
        Creates an account.

        Raises:
            ConflictError: username or email already registered (→ 409)
            DatabaseError: insert failed for any other reason (→ 500)
        """
        email = email.lower()

        existing = await db.execute(
            select(User.username, User.email).where(
                (User.username == username) | (func.lower(User.email) == email)
            )
        )
        for taken_username, taken_email in existing.all():
            if taken_username == username:
                raise ConflictError(message="Username is already taken", field="username")
            raise ConflictError(message="Email is already registered", field="email")

        user = User(
            username=username,
            email=email,
            password_hash=await run_in_threadpool(hash_password, password),
            role=UserRole.USER.value,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same name or email
            await db.rollback()
            raise ConflictError(message="Username or email is already taken") from None
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Signup failed for %s: %s", username, e, exc_info=True)
            raise DatabaseError(message="Could not create the account. Please try again.") from e

        logger.info("User %s signed up (%s)", user.id, username)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Raises:
            UnauthenticatedError: unknown email or wrong password. The message
            is the same for both.
        """
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        user = result.scalar_one_or_none()
        if user is None or not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Failed sign-in for %s", email)
            raise UnauthenticatedError(message="Invalid email or password")
        return user


user_service = UserService()
