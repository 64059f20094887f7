"""
Question request/response schemas.

Tags are always returned flattened as [{id, name}], never as join rows.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from stackit.config import settings
from stackit.schemas.common import CamelModel
from stackit.schemas.user import OwnerDetail, OwnerSummary


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class QuestionIn(CamelModel):
    """
    Body of POST /api/questions and PUT /api/questions/{id}.

    Structural checks only. The description is sanitized and measured by
    the rich-text pipeline, and tag names are cleaned by the TagNormalizer.
    """

    title: str = Field(min_length=1, max_length=settings.title_max_length)
    description: str = Field(min_length=1, max_length=settings.description_max_bytes)
    tags: List[str] = Field(min_length=1)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description must not be blank")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TagOut(CamelModel):
    id: int
    name: str


class QuestionListItem(CamelModel):
    """Feed card. Owner email is intentionally absent."""

    id: uuid.UUID
    title: str
    description: str
    created_at: datetime
    updated_at: datetime
    user_id: uuid.UUID
    user: OwnerSummary
    tags: List[TagOut]


class QuestionDetail(QuestionListItem):
    user: OwnerDetail


class QuestionWriteResponse(CamelModel):
    success: bool = True
    message: str
    question: QuestionDetail


class QuestionDetailResponse(CamelModel):
    success: bool = True
    question: QuestionDetail


class QuestionListResponse(CamelModel):
    success: bool = True
    questions: List[QuestionListItem]
    current_page: int
    total_pages: int
    total_questions: int
