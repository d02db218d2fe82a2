"""Feedback service — authorized, filtered and ranked feedback reads.

Every read follows the same pipeline:

    authorize → fetch → parse filters → filter → rank

Authorization always comes first, so the filter engine only ever sees
items the principal was already allowed to see.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

import structlog

from feedbase.auth.authorizer import Authorizer
from feedbase.auth.decisions import FeedbackAccess, WorkspaceAccess
from feedbase.auth.principal import Principal
from feedbase.domain import Board, Feedback, Tag, Workspace
from feedbase.feedback.filters import SortMode, filter_feedback, parse_filter_spec
from feedbase.feedback.ranking import rank_feedback
from feedbase.store import ResourceStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class FeedbackQuery:
    """Flat filter params plus sort mode and status tab."""

    params: Mapping[str, str]
    sort: SortMode = SortMode.DEFAULT
    tab: Optional[str] = None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "FeedbackQuery":
        return cls(
            params=params,
            sort=SortMode.parse(params.get("sort")),
            tab=params.get("tab") or None,
        )


class FeedbackService:
    """Read-side business logic for workspaces, boards and feedback."""

    def __init__(self, store: ResourceStore, now: Optional[datetime] = None):
        self.store = store
        self.authorizer = Authorizer(store)
        self._now = now

    # ─── Workspaces ─────────────────────────────────────

    async def get_workspace(self, principal: Principal, slug: str) -> Workspace:
        """Public workspace lookup: anyone may see that it exists."""
        decision = await self.authorizer.authorize_workspace(
            principal, slug, allow_anon_access=True, require_login=False
        )
        return decision.unwrap().workspace

    async def list_tags(self, principal: Principal, slug: str) -> Sequence[Tag]:
        access: WorkspaceAccess = (
            await self.authorizer.authorize_workspace(principal, slug)
        ).unwrap()
        return await self.store.list_tags(access.workspace.id)

    # ─── Feedback lists ─────────────────────────────────

    async def list_workspace_feedback(
        self, principal: Principal, slug: str, query: FeedbackQuery
    ) -> list[Feedback]:
        """All feedback across a workspace's boards. Members only."""
        access: WorkspaceAccess = (
            await self.authorizer.authorize_workspace(principal, slug)
        ).unwrap()
        workspace_id = access.workspace.id
        items = await self.store.list_workspace_feedback(workspace_id)
        boards = await self.store.list_boards(workspace_id)
        return self._apply(items, boards, query)

    async def list_board_feedback(
        self,
        principal: Principal,
        query: FeedbackQuery,
        *,
        board_id: Optional[uuid.UUID] = None,
        workspace_slug: Optional[str] = None,
    ) -> list[Feedback]:
        """Feedback on one board (by id, or the workspace's default board).

        Login is not required; private boards still need membership.
        """
        board = (
            await self.authorizer.authorize_board(
                principal,
                board_id=board_id,
                workspace_slug=workspace_slug,
                require_login=False,
            )
        ).unwrap().board
        items = await self.store.list_board_feedback(board.id)
        boards = await self.store.list_boards(board.workspace_id)
        return self._apply(items, boards, query)

    async def get_feedback(
        self, principal: Principal, feedback_id: uuid.UUID, slug: str
    ) -> Feedback:
        access: FeedbackAccess = (
            await self.authorizer.authorize_feedback(
                principal, feedback_id, slug, require_login=False
            )
        ).unwrap()
        return access.feedback

    # ─── Helpers ────────────────────────────────────────

    def _apply(
        self,
        items: Sequence[Feedback],
        boards: Sequence[Board],
        query: FeedbackQuery,
    ) -> list[Feedback]:
        spec = parse_filter_spec(query.params, boards)
        filtered = filter_feedback(items, spec, query.tab)
        ranked = rank_feedback(filtered, query.sort, now=self._now)
        logger.debug(
            "feedback.listed",
            total=len(items),
            kept=len(ranked),
            sort=query.sort.value,
        )
        return ranked
