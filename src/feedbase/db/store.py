"""SQLAlchemy implementation of the ResourceStore lookups.

Rows are converted to frozen domain values on the way out, so nothing
downstream can lazy-load or mutate ORM state. Storage failures surface
as InternalError with a fixed message; the driver's text only goes to
the log.
"""

import functools
import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedbase import domain
from feedbase.db import models
from feedbase.errors import InternalError

logger = structlog.get_logger()


def _storage_call(fn):
    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("store.query_failed", op=fn.__name__, error=str(e))
            raise InternalError() from e
    return wrapper


# ─── Row → domain ───────────────────────────────────────


def to_workspace(row: models.Workspace) -> domain.Workspace:
    return domain.Workspace(id=row.id, slug=row.slug, name=row.name)


def to_board(row: models.FeedbackBoard) -> domain.Board:
    return domain.Board(
        id=row.id, workspace_id=row.workspace_id, name=row.name, private=row.private
    )


def to_tag(row: models.FeedbackTag) -> domain.Tag:
    return domain.Tag(
        id=row.id, workspace_id=row.workspace_id, name=row.name, color=row.color
    )


def to_feedback(row: models.Feedback) -> domain.Feedback:
    return domain.Feedback(
        id=row.id,
        board_id=row.board_id,
        workspace_id=row.workspace_id,
        title=row.title,
        content=row.content,
        status=row.status,
        tags=tuple(sorted((to_tag(t) for t in row.tags), key=lambda t: t.name.lower())),
        created_at=row.created_at,
        upvotes=row.upvotes,
        comment_count=row.comment_count,
    )


def to_api_key(row: models.ApiKey) -> domain.ApiKey:
    return domain.ApiKey(
        id=row.id,
        workspace_id=row.workspace_id,
        creator_id=row.creator_id,
        name=row.name,
        prefix=row.prefix,
        scope=domain.ApiKeyScope(row.permission),
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


class SqlStore:
    """ResourceStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Workspaces & members ───────────────────────────

    @_storage_call
    async def get_workspace_by_slug(self, slug: str) -> Optional[domain.Workspace]:
        result = await self.db.execute(
            select(models.Workspace).where(models.Workspace.slug == slug)
        )
        row = result.scalars().first()
        return to_workspace(row) if row else None

    @_storage_call
    async def is_member(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(models.WorkspaceMember.id).where(
                models.WorkspaceMember.workspace_id == workspace_id,
                models.WorkspaceMember.user_id == user_id,
            )
        )
        return result.scalars().first() is not None

    @_storage_call
    async def get_user(self, user_id: uuid.UUID) -> Optional[domain.User]:
        row = await self.db.get(models.User, user_id)
        return domain.User(id=row.id, email=row.email, name=row.name) if row else None

    # ─── Boards ─────────────────────────────────────────

    @_storage_call
    async def get_board(self, board_id: uuid.UUID) -> Optional[domain.Board]:
        row = await self.db.get(models.FeedbackBoard, board_id)
        return to_board(row) if row else None

    @_storage_call
    async def get_default_board(self, workspace_id: uuid.UUID) -> Optional[domain.Board]:
        result = await self.db.execute(
            select(models.FeedbackBoard)
            .join(
                models.WorkspaceModule,
                models.WorkspaceModule.feedback_default_board_id
                == models.FeedbackBoard.id,
            )
            .where(models.WorkspaceModule.workspace_id == workspace_id)
        )
        row = result.scalars().first()
        return to_board(row) if row else None

    @_storage_call
    async def list_boards(self, workspace_id: uuid.UUID) -> Sequence[domain.Board]:
        result = await self.db.execute(
            select(models.FeedbackBoard)
            .where(models.FeedbackBoard.workspace_id == workspace_id)
            .order_by(models.FeedbackBoard.name)
        )
        return [to_board(row) for row in result.scalars().all()]

    # ─── Feedback & tags ────────────────────────────────

    @_storage_call
    async def get_feedback(self, feedback_id: uuid.UUID) -> Optional[domain.Feedback]:
        result = await self.db.execute(
            select(models.Feedback)
            .where(models.Feedback.id == feedback_id)
            .options(selectinload(models.Feedback.tags))
        )
        row = result.scalars().first()
        return to_feedback(row) if row else None

    @_storage_call
    async def list_board_feedback(self, board_id: uuid.UUID) -> Sequence[domain.Feedback]:
        result = await self.db.execute(
            select(models.Feedback)
            .where(models.Feedback.board_id == board_id)
            .options(selectinload(models.Feedback.tags))
        )
        return [to_feedback(row) for row in result.scalars().all()]

    @_storage_call
    async def list_workspace_feedback(
        self, workspace_id: uuid.UUID
    ) -> Sequence[domain.Feedback]:
        # Tenancy goes through the board, not the denormalized column.
        result = await self.db.execute(
            select(models.Feedback)
            .join(models.FeedbackBoard, models.Feedback.board_id == models.FeedbackBoard.id)
            .where(models.FeedbackBoard.workspace_id == workspace_id)
            .options(selectinload(models.Feedback.tags))
        )
        return [to_feedback(row) for row in result.scalars().all()]

    @_storage_call
    async def list_tags(self, workspace_id: uuid.UUID) -> Sequence[domain.Tag]:
        result = await self.db.execute(
            select(models.FeedbackTag)
            .where(models.FeedbackTag.workspace_id == workspace_id)
            .order_by(models.FeedbackTag.name)
        )
        return [to_tag(row) for row in result.scalars().all()]

    # ─── API keys ───────────────────────────────────────

    @_storage_call
    async def get_api_key_by_hash(self, key_hash: str) -> Optional[domain.ApiKey]:
        result = await self.db.execute(
            select(models.ApiKey).where(models.ApiKey.key_hash == key_hash)
        )
        row = result.scalars().first()
        return to_api_key(row) if row else None
