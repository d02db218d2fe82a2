"""Resolved identities.

A Principal is exactly one of three variants. Downstream code branches
on the variant with isinstance() instead of comparing strings, and the
scope of a service account is an enum checked once at resolution time.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from feedbase.domain import ApiKeyScope


@dataclass(frozen=True)
class Anonymous:
    """No (valid) credential was presented."""


@dataclass(frozen=True)
class SessionUser:
    """A logged-in user, identified by a session cookie."""

    id: uuid.UUID


@dataclass(frozen=True)
class ServiceAccount:
    """A workspace API key, acting on behalf of the user who created it.

    The key belongs to one workspace and only ever counts there.
    """

    owner_id: uuid.UUID
    scope: ApiKeyScope
    workspace_id: uuid.UUID
    key_id: Optional[uuid.UUID] = None


Principal = Union[Anonymous, SessionUser, ServiceAccount]

ANONYMOUS = Anonymous()


def is_anonymous(principal: Principal) -> bool:
    return isinstance(principal, Anonymous)


def principal_user_id(principal: Principal) -> Optional[uuid.UUID]:
    """The user a principal acts as, or None for anonymous callers."""
    if isinstance(principal, SessionUser):
        return principal.id
    if isinstance(principal, ServiceAccount):
        return principal.owner_id
    return None


def membership_user_id(
    principal: Principal, workspace_id: uuid.UUID
) -> Optional[uuid.UUID]:
    """The user whose membership in ``workspace_id`` counts for this principal.

    Public-scoped keys never stand in for their owner's membership, so
    they can only reach resources that need no membership at all. A key
    issued by another workspace never counts, even if its owner is a
    member here too.
    """
    if isinstance(principal, ServiceAccount):
        if principal.scope is not ApiKeyScope.FULL_ACCESS:
            return None
        if principal.workspace_id != workspace_id:
            return None
        return principal.owner_id
    return principal_user_id(principal)


def describe(principal: Principal) -> str:
    """Short label for log lines."""
    if isinstance(principal, SessionUser):
        return f"user:{principal.id}"
    if isinstance(principal, ServiceAccount):
        return f"api_key:{principal.key_id}:{principal.scope.value}"
    return "anonymous"
