"""
StackIt Backend — Question SQLAlchemy Model
=============================================

What:  ORM model for the `questions` table and the `question_tags` join table.
Who:   Written and read exclusively through QuestionRepository.

Table Design Rationale:
    - UUID primary key, preserved across updates (updates are in place)
    - description: sanitized HTML produced by the rich-text pipeline
    - updated_at: drives feed ordering; advanced explicitly on every update,
      including tag-only updates that touch no question column
    - question_tags: composite PK (question_id, tag_id); both FKs cascade so
      deleting a question never leaves association rows behind

    Index on updated_at DESC:
        The feed query is ORDER BY updated_at DESC LIMIT 10 OFFSET n.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stackit.database import Base

if TYPE_CHECKING:
    from stackit.models.tag import Tag
    from stackit.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


question_tags = Table(
    "question_tags",
    Base.metadata,
    Column(
        "question_id",
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class Question(Base):
    """
    A question posted by a user.

    Lifecycle:
        1. Created via authenticated POST (at least one tag)
        2. Updated in place by its owner: title, description and the full tag set
        3. Deleted by its owner, together with related notifications
    """

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Sanitized HTML from the rich-text editor",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="questions")
    tags: Mapped[List["Tag"]] = relationship(
        secondary=question_tags,
        back_populates="questions",
        order_by="Tag.name",
    )

    __table_args__ = (
        Index("idx_questions_updated_at", updated_at.desc()),
    )

    def touch(self) -> None:
        """Marks the row as modified now (feed ordering)."""
        self.updated_at = _utcnow()

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, title='{self.title[:30]}', user_id={self.user_id})>"
