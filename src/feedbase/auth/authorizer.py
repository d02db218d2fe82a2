"""Tenant and resource authorization.

Every check runs in a fixed order and stops at the first failure:

    identity → workspace → (membership) → resource → Authorized | Denied

Existence is always checked before permission, so a missing resource is
reported as 404 even to a caller who couldn't see it anyway, and a
missing workspace is never masked by a feedback/board lookup.

Nothing here is cached. Membership and board privacy are read fresh on
every call, so a revoked membership applies to the very next request.
"""

import uuid
from typing import Optional

import structlog

from feedbase.auth.decisions import (
    BoardAccess,
    BoardDecision,
    Denied,
    FeedbackAccess,
    FeedbackDecision,
    UserAccess,
    UserDecision,
    WorkspaceAccess,
    WorkspaceDecision,
)
from feedbase.auth.principal import (
    Principal,
    describe,
    is_anonymous,
    membership_user_id,
    principal_user_id,
)
from feedbase.domain import Board, Workspace
from feedbase.errors import (
    FeedbaseError,
    Forbidden,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from feedbase.store import ResourceStore

logger = structlog.get_logger()

NOT_A_MEMBER = "unauthorized, user is not a member of the workspace."


class Authorizer:
    """Decides whether a principal may reach a workspace, board or feedback post."""

    def __init__(self, store: ResourceStore):
        self.store = store

    # ─── Public operations ──────────────────────────────

    async def authorize_user(self, principal: Principal) -> UserDecision:
        """Only require that somebody is logged in."""
        return await self._decide("user", principal, self._user_chain(principal))

    async def authorize_workspace(
        self,
        principal: Principal,
        slug: str,
        *,
        allow_anon_access: bool = False,
        require_login: bool = True,
    ) -> WorkspaceDecision:
        """Authorize access to a workspace by slug.

        allow_anon_access skips the membership check. It does not skip the
        login check: the two flags are independent.
        """
        return await self._decide(
            "workspace",
            principal,
            self._workspace_chain(principal, slug, allow_anon_access, require_login),
        )

    async def authorize_board(
        self,
        principal: Principal,
        *,
        board_id: Optional[uuid.UUID] = None,
        workspace_slug: Optional[str] = None,
        require_login: bool = True,
    ) -> BoardDecision:
        """Authorize access to a board by id, or to a workspace's default board.

        Private boards always need membership; there is no flag to bypass it.
        """
        return await self._decide(
            "board",
            principal,
            self._board_chain(principal, board_id, workspace_slug, require_login),
        )

    async def authorize_feedback(
        self,
        principal: Principal,
        feedback_id: uuid.UUID,
        workspace_slug: str,
        *,
        require_login: bool = True,
    ) -> FeedbackDecision:
        """Authorize access to one feedback post inside a workspace.

        The post's workspace is re-derived through its board, and the
        board's privacy applies exactly as in authorize_board.
        """
        return await self._decide(
            "feedback",
            principal,
            self._feedback_chain(principal, feedback_id, workspace_slug, require_login),
        )

    # ─── Chains ─────────────────────────────────────────
    # Each chain raises at its first failing step; _decide turns that into Denied.

    async def _user_chain(self, principal: Principal) -> UserAccess:
        user_id = principal_user_id(principal)
        if user_id is None:
            raise Unauthenticated()
        return UserAccess(principal=principal, user_id=user_id)

    async def _workspace_chain(
        self,
        principal: Principal,
        slug: str,
        allow_anon_access: bool,
        require_login: bool,
    ) -> WorkspaceAccess:
        self._check_login(principal, require_login)
        workspace = await self._workspace_by_slug(slug)
        if not allow_anon_access:
            await self._check_membership(principal, workspace.id)
        return WorkspaceAccess(principal=principal, workspace=workspace)

    async def _board_chain(
        self,
        principal: Principal,
        board_id: Optional[uuid.UUID],
        workspace_slug: Optional[str],
        require_login: bool,
    ) -> BoardAccess:
        self._check_login(principal, require_login)

        board: Optional[Board]
        if board_id is not None:
            board = await self.store.get_board(board_id)
        elif workspace_slug:
            workspace = await self._workspace_by_slug(workspace_slug)
            board = await self.store.get_default_board(workspace.id)
        else:
            raise ValidationError("workspace slug or board id is required.")

        if board is None:
            raise NotFound("feedback board not found.")

        if board.private:
            await self._check_membership(principal, board.workspace_id)
        return BoardAccess(principal=principal, board=board)

    async def _feedback_chain(
        self,
        principal: Principal,
        feedback_id: uuid.UUID,
        workspace_slug: str,
        require_login: bool,
    ) -> FeedbackAccess:
        self._check_login(principal, require_login)
        workspace = await self._workspace_by_slug(workspace_slug)

        feedback = await self.store.get_feedback(feedback_id)
        if feedback is None:
            raise NotFound("feedback not found.")

        # Never trust the slug for tenancy: go through the post's board.
        board = await self.store.get_board(feedback.board_id)
        if board is None or board.workspace_id != workspace.id:
            raise NotFound("feedback not found.")

        if board.private:
            await self._check_membership(principal, board.workspace_id)
        return FeedbackAccess(
            principal=principal, feedback=feedback, workspace=workspace, board=board
        )

    # ─── Steps ──────────────────────────────────────────

    @staticmethod
    def _check_login(principal: Principal, require_login: bool) -> None:
        if require_login and is_anonymous(principal):
            raise Unauthenticated()

    async def _workspace_by_slug(self, slug: str) -> Workspace:
        workspace = await self.store.get_workspace_by_slug(slug)
        if workspace is None:
            raise NotFound("workspace not found.")
        return workspace

    async def _check_membership(
        self, principal: Principal, workspace_id: uuid.UUID
    ) -> None:
        user_id = membership_user_id(principal, workspace_id)
        if user_id is None or not await self.store.is_member(workspace_id, user_id):
            raise Forbidden(NOT_A_MEMBER)

    async def _decide(self, resource: str, principal: Principal, chain):
        try:
            return await chain
        except FeedbaseError as e:
            logger.info(
                "authz.denied",
                resource=resource,
                principal=describe(principal),
                kind=type(e).__name__,
                status=e.status,
            )
            return Denied(e)
