"""
StackIt Backend — Tag Normalizer Tests
========================================

What we test:
    ✅ Cleaning: commas and surrounding whitespace removed, empties dropped
    ✅ Dedup keeps first-seen order; identity is case-sensitive
    ✅ Rejection of non-lists, non-strings, overlong names, empty results
    ✅ connect_or_create reuses existing rows and creates missing ones
"""

import pytest
from sqlalchemy import func, select

from stackit.exceptions import ValidationError
from stackit.models.tag import Tag
from stackit.services.tag_normalizer import TagNormalizer


class TestNormalize:
    def setup_method(self):
        self.normalizer = TagNormalizer(max_length=64)

    def test_strips_commas_and_whitespace(self):
        assert self.normalizer.normalize([" go, ", "web,,", "  sql"]) == ["go", "web", "sql"]

    def test_deduplicates_in_first_seen_order(self):
        assert self.normalizer.normalize(["web", "go", "web", " go "]) == ["web", "go"]

    def test_case_sensitive_identity(self):
        assert self.normalizer.normalize(["Go", "go", "GO"]) == ["Go", "go", "GO"]

    def test_drops_empty_names(self):
        assert self.normalizer.normalize(["", " , ", "rust"]) == ["rust"]

    def test_all_empty_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.normalizer.normalize([",", "   "])
        assert exc_info.value.field == "tags"

    def test_empty_list_is_rejected(self):
        with pytest.raises(ValidationError):
            self.normalizer.normalize([])

    @pytest.mark.parametrize("value", ["go,web", None, {"name": "go"}, 42])
    def test_non_list_is_rejected(self, value):
        with pytest.raises(ValidationError):
            self.normalizer.normalize(value)

    def test_non_string_item_is_rejected(self):
        with pytest.raises(ValidationError):
            self.normalizer.normalize(["go", 3])

    def test_overlong_name_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.normalizer.normalize(["x" * 65])
        assert exc_info.value.context["max_length"] == 64

    def test_name_at_limit_is_accepted(self):
        assert self.normalizer.normalize(["x" * 64]) == ["x" * 64]


class TestConnectOrCreate:
    def setup_method(self):
        self.normalizer = TagNormalizer()

    @pytest.mark.asyncio
    async def test_creates_missing_tags_in_input_order(self, db_session):
        tags = await self.normalizer.connect_or_create(db_session, ["web", "go"])
        await db_session.commit()

        assert [t.name for t in tags] == ["web", "go"]
        assert all(t.id is not None for t in tags)

    @pytest.mark.asyncio
    async def test_reuses_existing_rows(self, db_session):
        first = await self.normalizer.connect_or_create(db_session, ["go"])
        await db_session.commit()
        second = await self.normalizer.connect_or_create(db_session, ["go", "web"])
        await db_session.commit()

        assert second[0].id == first[0].id
        count = await db_session.scalar(select(func.count()).select_from(Tag))
        assert count == 2

    @pytest.mark.asyncio
    async def test_case_variants_are_separate_rows(self, db_session):
        tags = await self.normalizer.connect_or_create(db_session, ["Go", "go"])
        await db_session.commit()

        assert tags[0].id != tags[1].id

    @pytest.mark.asyncio
    async def test_empty_input_touches_nothing(self, mock_db_session):
        assert await self.normalizer.connect_or_create(mock_db_session, []) == []
        mock_db_session.execute.assert_not_awaited()
