"""
StackIt Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Who:   Created by UserService.signup; read by the session dependency and
       embedded (as an owner summary) in every question response.

Table Design:
    - UUID primary key: non-sequential, not enumerable
    - username / email: each unique; the signup path checks both before
      insert and maps a racing IntegrityError to 409
    - password_hash: argon2 hash from passlib; never serialized
    - image: optional avatar URL (set by OAuth providers or profile edits)
    - role: USER | ADMIN; copied into the session token for the route guard
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stackit.database import Base

if TYPE_CHECKING:
    from stackit.models.notification import Notification
    from stackit.models.question import Question


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    """
    A registered account.

    Lifecycle:
        Created at signup, immutable id, never deleted by this service.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        index=True,
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="passlib argon2 hash, never returned by the API",
    )

    image: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
        default=None,
    )

    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=UserRole.USER.value,
        server_default=text("'USER'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    questions: Mapped[List["Question"]] = relationship(
        back_populates="user",
    )
    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="receiver",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
