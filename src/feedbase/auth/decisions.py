"""Authorization outcomes.

Each authorize_* call returns either a granted bundle or Denied. Both
answer the same three questions — allowed, reason, status — so callers
that only need the decision never have to care which one they hold.
``unwrap()`` hands back the bundle or raises the carried error, which
is how HTTP handlers consume them.
"""

import uuid
from dataclasses import dataclass
from typing import Union

from feedbase.auth.principal import Principal
from feedbase.domain import Board, Feedback, Workspace
from feedbase.errors import FeedbaseError


class _Granted:
    allowed = True
    reason = "authorized."
    status = 200

    def unwrap(self):
        return self


@dataclass(frozen=True)
class Denied:
    """The first check that failed. Nothing after it was evaluated."""

    error: FeedbaseError
    allowed = False

    @property
    def reason(self) -> str:
        return self.error.message

    @property
    def status(self) -> int:
        return self.error.status

    def unwrap(self):
        raise self.error


@dataclass(frozen=True)
class UserAccess(_Granted):
    principal: Principal
    user_id: uuid.UUID


@dataclass(frozen=True)
class WorkspaceAccess(_Granted):
    principal: Principal
    workspace: Workspace


@dataclass(frozen=True)
class BoardAccess(_Granted):
    principal: Principal
    board: Board


@dataclass(frozen=True)
class FeedbackAccess(_Granted):
    principal: Principal
    feedback: Feedback
    workspace: Workspace
    board: Board


UserDecision = Union[UserAccess, Denied]
WorkspaceDecision = Union[WorkspaceAccess, Denied]
BoardDecision = Union[BoardAccess, Denied]
FeedbackDecision = Union[FeedbackAccess, Denied]
