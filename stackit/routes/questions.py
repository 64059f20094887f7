"""
StackIt Backend — Question Route Handlers
===========================================

What:  CRUD over /api/questions plus the public feed.
How:   Thin shim over QuestionRepository. Descriptions go through the
       rich-text pipeline; on update that happens after the ownership check.
Who:   Called by the Feed, Question Detail/Edit and New Question pages.

Endpoint summary:
    POST   /api/questions           auth          201 {success, message, question}
    GET    /api/questions?page=N    public        200 {success, questions, currentPage, ...}
    GET    /api/questions/{id}      auth          200 {success, question}
    PUT    /api/questions/{id}      auth + owner  200 {success, message, question}
    DELETE /api/questions/{id}      auth + owner  200 {success, message}

A malformed {id} fails path validation and is answered with 400.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.database import get_db_session
from stackit.models.user import User
from stackit.richtext import prepare_description
from stackit.schemas.common import ErrorResponse, MessageResponse
from stackit.schemas.question import (
    QuestionDetail,
    QuestionDetailResponse,
    QuestionIn,
    QuestionListItem,
    QuestionListResponse,
    QuestionWriteResponse,
)
from stackit.security import get_current_user
from stackit.services.question_repository import QuestionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Questions"])

_AUTH_ERRORS = {
    400: {"description": "Invalid body or id", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
}
_OWNER_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Not the question's owner", "model": ErrorResponse},
    404: {"description": "Question not found", "model": ErrorResponse},
}


def get_question_repository(db: AsyncSession = Depends(get_db_session)) -> QuestionRepository:
    return QuestionRepository(db)


@router.post(
    "/questions",
    status_code=201,
    response_model=QuestionWriteResponse,
    responses={**_AUTH_ERRORS, 500: {"description": "Server error", "model": ErrorResponse}},
    summary="Ask a question",
    description=(
        "Creates a question owned by the signed-in user. The description is "
        "sanitized rich-text HTML; tags are created on first use."
    ),
)
async def create_question(
    body: QuestionIn,
    user: User = Depends(get_current_user),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionWriteResponse:
    question = await repo.create(
        title=body.title,
        description=prepare_description(body.description),
        owner_id=user.id,
        tag_names=body.tags,
    )
    return QuestionWriteResponse(
        message="Question created successfully",
        question=QuestionDetail.model_validate(question),
    )


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    responses={400: {"description": "Invalid page", "model": ErrorResponse}},
    summary="Public feed, most recently updated first",
)
async def list_questions(
    page: int = Query(default=1, ge=1, description="1-based page number; 10 questions per page"),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionListResponse:
    result = await repo.list(page=page)
    return QuestionListResponse(
        questions=[QuestionListItem.model_validate(q) for q in result.items],
        current_page=result.page,
        total_pages=result.total_pages,
        total_questions=result.total_count,
    )


@router.get(
    "/questions/{question_id}",
    response_model=QuestionDetailResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Get a single question",
)
async def get_question(
    question_id: UUID,
    user: User = Depends(get_current_user),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionDetailResponse:
    question = await repo.get_by_id(question_id)
    return QuestionDetailResponse(question=QuestionDetail.model_validate(question))


@router.put(
    "/questions/{question_id}",
    response_model=QuestionWriteResponse,
    responses=_OWNER_ERRORS,
    summary="Edit your question",
    description="Replaces title, description and the full tag set. The id is preserved.",
)
async def update_question(
    question_id: UUID,
    body: QuestionIn,
    user: User = Depends(get_current_user),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionWriteResponse:
    # 403/404 take precedence over description errors
    await repo.require_owner(question_id, user.id, action="update")
    question = await repo.update(
        question_id=question_id,
        actor_id=user.id,
        title=body.title,
        description=prepare_description(body.description),
        tag_names=body.tags,
    )
    return QuestionWriteResponse(
        message="Question updated successfully",
        question=QuestionDetail.model_validate(question),
    )


@router.delete(
    "/questions/{question_id}",
    response_model=MessageResponse,
    responses=_OWNER_ERRORS,
    summary="Delete your question",
)
async def delete_question(
    question_id: UUID,
    user: User = Depends(get_current_user),
    repo: QuestionRepository = Depends(get_question_repository),
) -> MessageResponse:
    await repo.delete(question_id=question_id, actor_id=user.id)
    return MessageResponse(message="Question deleted successfully")
