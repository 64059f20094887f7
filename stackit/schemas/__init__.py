"""
StackIt Backend — Pydantic Schemas
====================================

Request bodies and response envelopes. JSON field names are camelCase
(`createdAt`, `totalPages`); Python attributes stay snake_case.
"""

from stackit.schemas.common import CamelModel, ErrorResponse, HealthResponse, MessageResponse
from stackit.schemas.question import (
    QuestionDetail,
    QuestionDetailResponse,
    QuestionIn,
    QuestionListItem,
    QuestionListResponse,
    QuestionWriteResponse,
    TagOut,
)
from stackit.schemas.user import (
    CurrentUserResponse,
    OwnerDetail,
    OwnerSummary,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserOut,
)

__all__ = [
    "CamelModel",
    "CurrentUserResponse",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "OwnerDetail",
    "OwnerSummary",
    "QuestionDetail",
    "QuestionDetailResponse",
    "QuestionIn",
    "QuestionListItem",
    "QuestionListResponse",
    "QuestionWriteResponse",
    "SigninRequest",
    "SigninResponse",
    "SignupRequest",
    "SignupResponse",
    "TagOut",
    "UserOut",
]
