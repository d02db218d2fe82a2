"""Domain values consumed by the auth and feedback engines.

These are immutable snapshots of what the storage collaborator returns.
The core never mutates them; ORM rows are converted into these by
``feedbase.db.store.SqlStore``.

Timestamps are normalised to aware UTC on construction, so the filter
and ranking engines can compare them whatever the source.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ApiKeyScope(str, Enum):
    """What a workspace API key may be used for."""

    FULL_ACCESS = "full_access"
    PUBLIC_ACCESS = "public_access"


@dataclass(frozen=True)
class User:
    id: uuid.UUID
    email: str
    name: str


@dataclass(frozen=True)
class Workspace:
    """Top-level tenant boundary. Owns boards, tags and feedback."""

    id: uuid.UUID
    slug: str
    name: str = ""


@dataclass(frozen=True)
class Board:
    """A collection of feedback inside a workspace.

    ``private`` alone decides whether non-members can see the board.
    """

    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    private: bool = False


@dataclass(frozen=True)
class Tag:
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    color: str = ""


@dataclass(frozen=True)
class Feedback:
    """A feedback post. Belongs to exactly one board."""

    id: uuid.UUID
    board_id: uuid.UUID
    workspace_id: uuid.UUID
    title: str
    created_at: datetime
    content: str = ""
    status: Optional[str] = None
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    upvotes: int = 0
    comment_count: int = 0

    def __post_init__(self):
        object.__setattr__(self, "created_at", as_utc(self.created_at))

    @property
    def tag_names(self) -> frozenset[str]:
        """Lower-cased tag names, the key tag facets match on."""
        return frozenset(t.name.lower() for t in self.tags)


@dataclass(frozen=True)
class ApiKey:
    """A stored workspace API key. The secret itself is never kept."""

    id: uuid.UUID
    workspace_id: uuid.UUID
    creator_id: uuid.UUID
    name: str
    prefix: str
    scope: ApiKeyScope
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "expires_at", as_utc(self.expires_at))
