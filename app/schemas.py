"""
Pydantic schemas for request / response serialization.

Kept in a single file for now — split per-domain when it grows.
Schemas are deliberately decoupled from SQLAlchemy models so the
API surface can evolve independently of the DB layer.

Field names are snake_case in Python and camelCase on the wire
(``companyId``, ``accessToken``); both spellings are accepted on input.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Auth ─────────────────────────────────────────────────────────────
class RegisterRequest(CamelModel):
    company_name: str = Field(min_length=1, max_length=256)
    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=256)


class LoginRequest(CamelModel):
    username: str
    password: str
    company_id: uuid.UUID


class TokenResponse(CamelModel):
    access_token: str


class AdminRegisterUserRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=256)
    role: str | None = None


class RoleAssignmentRequest(CamelModel):
    user_id: uuid.UUID
    role_id: uuid.UUID


class TokenClaims(CamelModel):
    """The authorization snapshot carried inside an access token."""

    sub: uuid.UUID
    username: str
    company_id: uuid.UUID
    roles: list[str] = []
    permissions: list[str] = []


# ── User ─────────────────────────────────────────────────────────────
class UserOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    username: str
    email: str
    name: str
    created_at: datetime


class RegisterResponse(CamelModel):
    message: str
    user: UserOut


# ── Role ─────────────────────────────────────────────────────────────
class RoleOut(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    permissions: list[str] = []


# ── Article ──────────────────────────────────────────────────────────
class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=256)
    content: str


class ArticleUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    content: str | None = None


class ArticleOut(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
