"""
StackIt Backend — Tag Normalizer
==================================

What:  Maps a free-form list of tag names onto persisted Tag rows, creating
       the missing ones ("connect-or-create").
How:   1. normalize(): clean and deduplicate the names (pure, no I/O)
       2. connect_or_create(): one INSERT ... ON CONFLICT (name) DO NOTHING,
          then one SELECT ... WHERE name IN (...)
Who:   Called by QuestionRepository.create and .update.

Identity rules:
    - case-sensitive: "Python" and "python" are two tags
    - commas and surrounding whitespace are stripped; empty names are dropped
    - first occurrence wins when deduplicating

Concurrency:
    Two requests creating the same new tag both run the INSERT; the unique
    index on tags.name lets exactly one row in and the other statement
    becomes a no-op. Rows are inserted in sorted name order so concurrent
    transactions acquire index locks in the same order.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.config import settings
from stackit.exceptions import DatabaseError, ValidationError
from stackit.models.tag import Tag

logger = logging.getLogger(__name__)

_UPSERT_BUILDERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class TagNormalizer:
    """Stateless; one shared instance is enough."""

    def __init__(self, max_length: int | None = None):
        self.max_length = max_length or settings.tag_max_length

    def normalize(self, names: Any) -> List[str]:
        """
        Cleans and deduplicates tag names.

        Raises:
            ValidationError: not a list of strings, a name over the length
            limit, or nothing left after cleaning.
        """
        if not isinstance(names, (list, tuple)):
            raise ValidationError(message="Tags must be a list of strings", field="tags")

        cleaned: List[str] = []
        seen = set()
        for raw in names:
            if not isinstance(raw, str):
                raise ValidationError(message="Tags must be a list of strings", field="tags")
            name = raw.replace(",", "").strip()
            if not name or name in seen:
                continue
            if len(name) > self.max_length:
                raise ValidationError(
                    message=f"Tag '{name[:20]}…' exceeds {self.max_length} characters",
                    field="tags",
                    context={"max_length": self.max_length},
                )
            seen.add(name)
            cleaned.append(name)

        if not cleaned:
            raise ValidationError(message="At least one tag is required", field="tags")
        return cleaned

    async def connect_or_create(self, db: AsyncSession, names: Sequence[str]) -> List[Tag]:
        """
        Returns Tag rows for `names` (already normalized), in the same order.

        Runs inside the caller's transaction; nothing is committed here.
        """
        if not names:
            return []

        dialect = db.bind.dialect.name
        builder = _UPSERT_BUILDERS.get(dialect)
        if builder is None:
            raise DatabaseError(
                message="Tag storage is not supported on this database backend",
                context={"dialect": dialect},
            )

        now = datetime.now(timezone.utc)
        rows: List[Dict[str, Any]] = [
            {"name": name, "created_at": now} for name in sorted(set(names))
        ]
        stmt = builder(Tag.__table__).values(rows).on_conflict_do_nothing(
            index_elements=["name"],
        )
        await db.execute(stmt)

        result = await db.execute(select(Tag).where(Tag.name.in_(list(names))))
        by_name = {tag.name: tag for tag in result.scalars().all()}

        missing = [name for name in names if name not in by_name]
        if missing:
            # Only possible if a row vanished between INSERT and SELECT
            logger.error("Tags missing after upsert: %s", missing)
            raise DatabaseError(
                message="Could not store tags. Please try again.",
                context={"missing": missing},
            )

        logger.debug("Resolved %d tag(s): %s", len(names), ", ".join(names))
        return [by_name[name] for name in names]


tag_normalizer = TagNormalizer()
