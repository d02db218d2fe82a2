"""Identity resolution — raw credentials → one Principal.

Two credential sources, checked in order:
1. API key (Authorization: Bearer <key>) — wins whenever present
2. Session cookie (signed JWT)

A bad API key is an error. A missing, expired or unknown session is not:
it simply resolves to Anonymous, and operations that need a login turn
that into 401 themselves.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

import structlog

from feedbase.auth.api_keys import hash_api_key
from feedbase.auth.jwt import TokenError, session_user_id
from feedbase.auth.principal import (
    ANONYMOUS,
    Principal,
    ServiceAccount,
    SessionUser,
)
from feedbase.domain import ApiKeyScope
from feedbase.errors import Forbidden, Unauthenticated
from feedbase.store import ResourceStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class RequestContext:
    """Credentials and per-operation flags for one request.

    Built explicitly by the transport layer and handed to the resolver,
    so nothing here reads cookies or headers on its own.
    """

    session_token: Optional[str] = None
    service_credential: Optional[str] = None
    allow_public_scope: bool = False

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
        cookie_name: str,
        allow_public_scope: bool = False,
    ) -> "RequestContext":
        """Extract credentials from HTTP headers and cookies.

        Any Authorization header counts as a service credential. A header
        without a "<scheme> <key>" shape yields an empty credential, which
        then fails resolution instead of silently falling back to the session.
        """
        service_credential = None
        authorization = headers.get("authorization")
        if authorization is not None:
            parts = authorization.split(" ", 1)
            service_credential = parts[1].strip() if len(parts) == 2 else ""
        return cls(
            session_token=cookies.get(cookie_name) or None,
            service_credential=service_credential,
            allow_public_scope=allow_public_scope,
        )


class IdentityResolver:
    """Turns a RequestContext into exactly one Principal."""

    def __init__(self, store: ResourceStore):
        self.store = store

    async def resolve(self, ctx: RequestContext) -> Principal:
        """Resolve the caller.

        Raises Unauthenticated for an invalid/expired API key or one whose
        creator no longer exists, and Forbidden for a public-scoped key
        used where public access isn't allowed.
        """
        if ctx.service_credential is not None:
            return await self._resolve_api_key(
                ctx.service_credential, ctx.allow_public_scope
            )
        return await self._resolve_session(ctx.session_token)

    async def _resolve_api_key(
        self, credential: str, allow_public_scope: bool
    ) -> ServiceAccount:
        if not credential:
            raise Unauthenticated("unauthorized, invalid api key.")

        api_key = await self.store.get_api_key_by_hash(hash_api_key(credential))
        if api_key is None:
            logger.info("identity.api_key_rejected", reason="unknown")
            raise Unauthenticated("unauthorized, invalid api key.")

        if api_key.expires_at and api_key.expires_at < datetime.now(timezone.utc):
            logger.info("identity.api_key_rejected", reason="expired", key_id=str(api_key.id))
            raise Unauthenticated("unauthorized, api key has expired.")

        # Scope is necessary but not sufficient: a valid public key still
        # can't be used on an operation that doesn't opt into public access.
        # Checked before the owner lookup, so an orphaned public key on a
        # non-public route reports 403 rather than 401.
        if api_key.scope is ApiKeyScope.PUBLIC_ACCESS and not allow_public_scope:
            logger.info("identity.api_key_rejected", reason="scope", key_id=str(api_key.id))
            raise Forbidden("unauthorized, missing permissions.")

        owner = await self.store.get_user(api_key.creator_id)
        if owner is None:
            logger.warning("identity.api_key_orphaned", key_id=str(api_key.id))
            raise Unauthenticated("unauthorized, api key owner not found.")

        return ServiceAccount(
            owner_id=owner.id,
            scope=api_key.scope,
            workspace_id=api_key.workspace_id,
            key_id=api_key.id,
        )

    async def _resolve_session(self, token: Optional[str]) -> Principal:
        if not token:
            return ANONYMOUS
        try:
            user_id = session_user_id(token)
        except TokenError as e:
            logger.debug("identity.session_ignored", reason=str(e))
            return ANONYMOUS

        user = await self.store.get_user(user_id)
        if user is None:
            logger.debug("identity.session_ignored", reason="unknown user")
            return ANONYMOUS
        return SessionUser(id=user.id)
