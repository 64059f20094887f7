"""
StackIt Backend — User Service Unit Tests
===========================================

Mocked sessions only (no database).

What we test:
    ✅ Pre-insert availability check → ConflictError naming the field
    ✅ IntegrityError at commit (concurrent signup) → ConflictError, rolled back
    ✅ Other driver errors → DatabaseError
    ✅ authenticate() rejects unknown emails and wrong passwords alike
    ✅ Hashing and verification run in a worker thread
"""

import threading
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from stackit.exceptions import ConflictError, DatabaseError, UnauthenticatedError
from stackit.models.user import User
from stackit.security import hash_password
from stackit.services.user_service import UserService


def _rows(mock_db_session, rows):
    result = MagicMock()
    result.all.return_value = rows
    mock_db_session.execute = AsyncMock(return_value=result)


class TestSignup:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_taken_username(self, mock_db_session):
        _rows(mock_db_session, [("alice", "someone@x.com")])

        with pytest.raises(ConflictError) as exc_info:
            await self.service.signup(mock_db_session, "alice", "alice@x.com", "secret1")

        assert exc_info.value.field == "username"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_taken_email(self, mock_db_session):
        _rows(mock_db_session, [("someone", "alice@x.com")])

        with pytest.raises(ConflictError) as exc_info:
            await self.service.signup(mock_db_session, "alice", "alice@x.com", "secret1")

        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_race_at_commit_is_conflict(self, mock_db_session):
        _rows(mock_db_session, [])
        mock_db_session.commit = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        )

        with pytest.raises(ConflictError):
            await self.service.signup(mock_db_session, "alice", "alice@x.com", "secret1")

        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_driver_error_is_database_error(self, mock_db_session):
        _rows(mock_db_session, [])
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("connection reset"))
        )

        with pytest.raises(DatabaseError):
            await self.service.signup(mock_db_session, "alice", "alice@x.com", "secret1")

    @pytest.mark.asyncio
    async def test_stores_hash_and_lowercased_email(self, mock_db_session):
        _rows(mock_db_session, [])

        user = await self.service.signup(mock_db_session, "alice", "Alice@X.com", "secret1")

        assert user.email == "alice@x.com"
        assert user.password_hash != "secret1"
        mock_db_session.add.assert_called_once_with(user)
        mock_db_session.commit.assert_awaited_once()


class TestAuthenticate:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db_session):
        user = User(username="alice", email="alice@x.com", password_hash=hash_password("secret1"))
        mock_db_session.execute.return_value.scalar_one_or_none = MagicMock(return_value=user)

        with pytest.raises(UnauthenticatedError):
            await self.service.authenticate(mock_db_session, "alice@x.com", "nope")

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db_session):
        mock_db_session.execute.return_value.scalar_one_or_none = MagicMock(return_value=None)

        with pytest.raises(UnauthenticatedError):
            await self.service.authenticate(mock_db_session, "ghost@x.com", "secret1")

    @pytest.mark.asyncio
    async def test_correct_password(self, mock_db_session):
        user = User(username="alice", email="alice@x.com", password_hash=hash_password("secret1"))
        mock_db_session.execute.return_value.scalar_one_or_none = MagicMock(return_value=user)

        assert await self.service.authenticate(mock_db_session, "alice@x.com", "secret1") is user


class TestHashingOffTheEventLoop:
    @pytest.mark.asyncio
    async def test_signup_hashes_in_a_worker_thread(self, mock_db_session, monkeypatch):
        _rows(mock_db_session, [])
        threads = []

        def fake_hash(password):
            threads.append(threading.get_ident())
            return "hashed"

        monkeypatch.setattr("stackit.services.user_service.hash_password", fake_hash)

        user = await UserService().signup(mock_db_session, "alice", "alice@x.com", "secret1")

        assert user.password_hash == "hashed"
        assert threads and threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_authenticate_verifies_in_a_worker_thread(self, mock_db_session, monkeypatch):
        user = User(username="alice", email="alice@x.com", password_hash="hashed")
        mock_db_session.execute.return_value.scalar_one_or_none = MagicMock(return_value=user)
        threads = []

        def fake_verify(password, hashed):
            threads.append(threading.get_ident())
            return True

        monkeypatch.setattr("stackit.services.user_service.verify_password", fake_verify)

        assert await UserService().authenticate(mock_db_session, "alice@x.com", "secret1") is user
        assert threads and threads[0] != threading.get_ident()
