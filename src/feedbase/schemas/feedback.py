"""Pydantic schemas for workspaces, boards, tags, feedback and API keys.

Pydantic v2 models validate response data. "Read" schemas read straight
from domain dataclasses or ORM rows via from_attributes.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from feedbase.domain import ApiKeyScope


class ErrorResponse(BaseModel):
    message: str
    status: int


# Documented on every router; the body is what feedbase_error_handler returns.
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404)}


# ─── Workspaces ─────────────────────────────────────────

class WorkspaceRead(BaseModel):
    id: uuid.UUID
    slug: str
    name: str

    model_config = {"from_attributes": True}


class TagRead(BaseModel):
    id: uuid.UUID
    name: str
    color: str

    model_config = {"from_attributes": True}


# ─── Feedback ───────────────────────────────────────────

class FeedbackRead(BaseModel):
    id: uuid.UUID
    board_id: uuid.UUID
    workspace_id: uuid.UUID
    title: str
    content: str
    status: Optional[str] = None
    tags: list[TagRead] = []
    upvotes: int
    comment_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ─── API keys ───────────────────────────────────────────

class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    permission: ApiKeyScope = ApiKeyScope.FULL_ACCESS
    expires_days: Optional[int] = Field(None, ge=1, description="Expire in N days (None = never)")


class ApiKeyRead(BaseModel):
    """API key info (without the actual key)."""
    id: uuid.UUID
    name: str
    prefix: str
    permission: ApiKeyScope
    created_at: datetime
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ApiKeyCreated(ApiKeyRead):
    """Response for API key creation — key is only shown ONCE."""
    key: str


class MeRead(BaseModel):
    user_id: uuid.UUID
    identity_type: str
