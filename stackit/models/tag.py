"""
StackIt Backend — Tag SQLAlchemy Model
========================================

Shared tag vocabulary. One row per distinct (case-sensitive) name; rows are
created lazily by TagNormalizer.connect_or_create and are never deleted, even
when no question references them any more.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stackit.database import Base

if TYPE_CHECKING:
    from stackit.models.question import Question


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # The unique constraint is what makes concurrent connect-or-create safe
    name: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    questions: Mapped[List["Question"]] = relationship(
        secondary="question_tags",
        back_populates="tags",
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
