"""SQLAlchemy ORM models — the storage side of workspaces, boards and feedback.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Column types are portable (Uuid, String, Boolean) so the same models run
on Postgres in deployment and on SQLite in tests.

Tenancy: every row below Workspace carries a workspace_id, but the auth
layer never trusts it for feedback — it goes through the board instead.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Tenancy: users, workspaces, members, module config
# ══════════════════════════════════════════════════════════════


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Workspace(Base):
    """Multi-tenant root. Boards, tags, feedback and API keys hang off it."""

    __tablename__ = "workspaces"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    boards: Mapped[list["FeedbackBoard"]] = relationship(back_populates="workspace")


class WorkspaceMember(Base):
    """Membership — grants access to private boards and to mutations."""

    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_members"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member"
    )  # owner, member
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class WorkspaceModule(Base):
    """Per-workspace feedback settings, including the default board."""

    __tablename__ = "workspace_modules"

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True
    )
    feedback_default_board_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("feedback_boards.id", ondelete="SET NULL"), nullable=True
    )


# ══════════════════════════════════════════════════════════════
# Feedback: boards, tags, posts
# ══════════════════════════════════════════════════════════════


feedback_tag_links = Table(
    "feedback_tag_links",
    Base.metadata,
    Column("feedback_id", Uuid, ForeignKey("feedback.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("feedback_tags.id", ondelete="CASCADE"), primary_key=True),
)


class FeedbackBoard(Base):
    __tablename__ = "feedback_boards"
    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_boards_workspace_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    workspace: Mapped["Workspace"] = relationship(back_populates="boards")


class FeedbackTag(Base):
    __tablename__ = "feedback_tags"
    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_tags_workspace_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="")


class Feedback(Base):
    """A feedback post.

    upvotes and comment_count are counters kept by the write path; the
    ranking engine reads them as-is.
    """

    __tablename__ = "feedback"
    __table_args__ = (
        Index("idx_feedback_board", "board_id"),
        Index("idx_feedback_workspace", "workspace_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    board_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("feedback_boards.id", ondelete="CASCADE"), nullable=False
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    tags: Mapped[list["FeedbackTag"]] = relationship(secondary=feedback_tag_links)


# ══════════════════════════════════════════════════════════════
# API keys
# ══════════════════════════════════════════════════════════════


class ApiKey(Base):
    """Workspace API key for integrations and widgets.

    The key itself is only shown once (on creation). We store the hash
    and a prefix for identification.

    permission:
    - 'full_access': acts as the creating user
    - 'public_access': only usable on public read operations
    """

    __tablename__ = "api_keys"
    __table_args__ = (
        Index("idx_api_keys_workspace", "workspace_id"),
        Index("idx_api_keys_hash", "key_hash"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    prefix: Mapped[str] = mapped_column(String(10), nullable=False)  # e.g. "fb_a1b2c3d"
    permission: Mapped[str] = mapped_column(
        String(20), nullable=False, default="full_access"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
