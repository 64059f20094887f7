"""
StackIt Backend — Question Repository
=======================================

What:  All persistence for questions: create, read, in-place update, delete
       and the paginated feed.
How:   Wraps one AsyncSession. Every write is a single transaction that the
       repository commits itself; any failure rolls the whole write back.
Who:   Called by the /api/questions route handlers.

Transaction boundaries:
    create  → INSERT tags (on conflict do nothing), INSERT question,
              INSERT question_tags                                   COMMIT
    update  → SELECT question, INSERT tags, UPDATE question,
              DELETE + INSERT question_tags                          COMMIT
    delete  → SELECT question, DELETE notifications,
              DELETE question_tags, DELETE question                  COMMIT

Loading:
    Relationships are never lazy-loaded (async sessions forbid implicit
    I/O). Every read goes through _select_question(), which eager-loads the
    owner and the tags with selectinload.

Feed ordering:
    updated_at DESC, created_at DESC, id DESC. The trailing id keeps pages
    disjoint when timestamps collide.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, NoReturn, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stackit.config import settings
from stackit.exceptions import (
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    StackItError,
    ValidationError,
)
from stackit.models.notification import Notification
from stackit.models.question import Question
from stackit.services.tag_normalizer import TagNormalizer, tag_normalizer as default_tag_normalizer

logger = logging.getLogger(__name__)


@dataclass
class QuestionPage:
    """One page of the feed."""

    items: List[Question] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


def _select_question() -> Select:
    return select(Question).options(
        selectinload(Question.user),
        selectinload(Question.tags),
    )


def _require_text(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message=f"{field_name.capitalize()} is required", field=field_name)
    return value


class QuestionRepository:
    """
    Question persistence bound to one session.

    Error Handling Strategy:
        Domain errors (ValidationError, NotFoundError, ForbiddenError)
        propagate unchanged. SQLAlchemy errors are rolled back, logged, and
        re-raised as DatabaseError so no driver detail reaches the client.
    """

    def __init__(self, db: AsyncSession, tag_normalizer: Optional[TagNormalizer] = None):
        self.db = db
        self.tags = tag_normalizer or default_tag_normalizer

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_by_id(self, question_id: UUID) -> Question:
        """
        Raises:
            NotFoundError: no question with this id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            question = await self._fetch(question_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching question %s: %s", question_id, e)
            raise DatabaseError(
                message="Could not retrieve the question. Please try again.",
                context={"question_id": str(question_id)},
            ) from e
        if question is None:
            raise NotFoundError(resource="question", resource_id=str(question_id))
        return question

    async def list(self, page: int = 1, page_size: Optional[int] = None) -> QuestionPage:
        """
        Offset-paginated feed, most recently updated first.

        Query plan:
            SELECT ... ORDER BY updated_at DESC, created_at DESC, id DESC
            LIMIT :page_size OFFSET (:page - 1) * :page_size
            → idx_questions_updated_at, then two IN (...) loads for users and tags
        """
        page_size = page_size or settings.feed_page_size
        if page < 1:
            raise ValidationError(message="Page must be 1 or greater", field="page")
        if page_size < 1:
            raise ValidationError(message="Page size must be 1 or greater", field="page_size")

        offset = (page - 1) * page_size
        try:
            total_count = await self.db.scalar(select(func.count()).select_from(Question)) or 0
            if offset >= total_count:
                # Past the last page; also keeps huge offsets out of the driver
                return QuestionPage(page=page, page_size=page_size, total_count=total_count)
            result = await self.db.execute(
                _select_question()
                .order_by(
                    Question.updated_at.desc(),
                    Question.created_at.desc(),
                    Question.id.desc(),
                )
                .offset(offset)
                .limit(page_size)
            )
            items = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing questions: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve questions. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return QuestionPage(items=items, page=page, page_size=page_size, total_count=total_count)

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(
        self,
        title: str,
        description: str,
        owner_id: UUID,
        tag_names: Sequence[str],
    ) -> Question:
        """
        Inserts a question and links its tags, creating missing tags.

        Returns:
            The committed question with owner and tags loaded.
        """
        title = _require_text(title, "title")
        description = _require_text(description, "description")
        names = self.tags.normalize(tag_names)

        try:
            tags = await self.tags.connect_or_create(self.db, names)
            question = Question(title=title, description=description, user_id=owner_id)
            question.tags = tags
            self.db.add(question)
            await self.db.commit()
        except Exception as e:
            await self._fail("create", e)

        logger.info("Question %s created by %s with %d tag(s)", question.id, owner_id, len(names))
        return await self._reload(question.id)

    async def update(
        self,
        question_id: UUID,
        actor_id: UUID,
        title: str,
        description: str,
        tag_names: Sequence[str],
    ) -> Question:
        """
        Replaces title, description and the whole tag set in place.

        id and created_at are preserved; updated_at advances even when only
        the tags change.

        Raises:
            ValidationError: empty title/description or no usable tag
            NotFoundError:   question does not exist
            ForbiddenError:  actor is not the owner (nothing is written)
        """
        title = _require_text(title, "title")
        description = _require_text(description, "description")
        names = self.tags.normalize(tag_names)
        question = await self.require_owner(question_id, actor_id, action="update")

        try:
            tags = await self.tags.connect_or_create(self.db, names)
            question.title = title
            question.description = description
            question.tags = tags
            question.touch()
            await self.db.commit()
        except Exception as e:
            await self._fail("update", e)

        logger.info("Question %s updated by %s", question_id, actor_id)
        return await self._reload(question_id)

    async def delete(self, question_id: UUID, actor_id: UUID) -> None:
        """
        Deletes the question and its related notifications atomically.

        A notification is related when its message contains the question id
        or its receiver is the question's owner.
        """
        question = await self.require_owner(question_id, actor_id, action="delete")

        try:
            removed = await self.db.execute(
                delete(Notification)
                .where(
                    or_(
                        Notification.message.contains(str(question.id)),
                        Notification.receiver_id == question.user_id,
                    )
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.delete(question)
            await self.db.commit()
        except Exception as e:
            await self._fail("delete", e)

        logger.info(
            "Question %s deleted by %s (%d notification(s) removed)",
            question_id, actor_id, removed.rowcount or 0,
        )

    async def require_owner(self, question_id: UUID, actor_id: UUID, action: str = "update") -> Question:
        """
        Loads a question for writing and checks that `actor_id` owns it.

        Read-only: nothing is rolled back on refusal, so objects already
        loaded in the session stay usable.

        Raises:
            NotFoundError:  question does not exist
            ForbiddenError: actor is not the owner
            DatabaseError:  query failed
        """
        try:
            question = await self._fetch(question_id)
        except SQLAlchemyError as e:
            await self._fail(action, e)
        if question is None:
            raise NotFoundError(resource="question", resource_id=str(question_id))
        if question.user_id != actor_id:
            logger.warning("User %s tried to %s question %s owned by %s",
                           actor_id, action, question_id, question.user_id)
            raise ForbiddenError(
                message=f"You can only {action} your own questions",
                context={"question_id": str(question_id)},
            )
        return question

    # ── Internals ─────────────────────────────────────────────────────────

    async def _fetch(self, question_id: UUID) -> Optional[Question]:
        result = await self.db.execute(_select_question().where(Question.id == question_id))
        return result.scalar_one_or_none()

    async def _reload(self, question_id: UUID) -> Question:
        """Re-reads a committed question so tags come back in stored order."""
        result = await self.db.execute(
            _select_question()
            .where(Question.id == question_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _fail(self, operation: str, error: Exception) -> NoReturn:
        """Rolls back, then re-raises domain errors or wraps anything else."""
        await self.db.rollback()
        if isinstance(error, StackItError):
            raise error
        logger.error("Question %s failed: %s", operation, error, exc_info=True)
        raise DatabaseError(
            message=f"Could not {operation} the question. Please try again.",
            context={"error_type": type(error).__name__},
        ) from error
