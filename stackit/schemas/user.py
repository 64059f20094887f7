"""
User-facing account schemas.

Two owner shapes are embedded in question responses:
    OwnerSummary  id, username, image          (feed items)
    OwnerDetail   id, username, email, image   (single question)

No schema here has a password or password_hash field, so an ORM User can
be passed through `model_validate` without leaking the hash.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from stackit.schemas.common import CamelModel


class SignupRequest(CamelModel):
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class SigninRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserOut(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    image: Optional[str] = None
    role: str
    created_at: datetime


class OwnerSummary(CamelModel):
    id: uuid.UUID
    username: str
    image: Optional[str] = None


class OwnerDetail(OwnerSummary):
    email: str


class SignupResponse(CamelModel):
    success: bool = True
    message: str = "Account created"
    user: UserOut


class SigninResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class CurrentUserResponse(CamelModel):
    success: bool = True
    user: UserOut
