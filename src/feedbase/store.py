"""The lookups the decision core needs from storage.

The auth layer and the feedback service only talk to this protocol.
``feedbase.db.store.SqlStore`` implements it on SQLAlchemy; tests or
other transports can supply their own.
"""

import uuid
from typing import Optional, Protocol, Sequence

from feedbase.domain import ApiKey, Board, Feedback, Tag, User, Workspace


class ResourceStore(Protocol):
    async def get_workspace_by_slug(self, slug: str) -> Optional[Workspace]: ...

    async def get_board(self, board_id: uuid.UUID) -> Optional[Board]: ...

    async def get_default_board(self, workspace_id: uuid.UUID) -> Optional[Board]: ...

    async def list_boards(self, workspace_id: uuid.UUID) -> Sequence[Board]: ...

    async def get_feedback(self, feedback_id: uuid.UUID) -> Optional[Feedback]: ...

    async def list_board_feedback(self, board_id: uuid.UUID) -> Sequence[Feedback]: ...

    async def list_workspace_feedback(
        self, workspace_id: uuid.UUID
    ) -> Sequence[Feedback]: ...

    async def list_tags(self, workspace_id: uuid.UUID) -> Sequence[Tag]: ...

    async def is_member(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> bool: ...

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]: ...

    async def get_api_key_by_hash(self, key_hash: str) -> Optional[ApiKey]: ...
