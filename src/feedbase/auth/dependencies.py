"""FastAPI auth dependencies.

These are used as Depends() in route handlers to build the request's
RequestContext and resolve it to a Principal. Whether a route accepts
public-scoped API keys is decided per route, by picking
get_principal or get_public_principal.
"""

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feedbase.auth.identity import IdentityResolver, RequestContext
from feedbase.auth.principal import Principal, describe
from feedbase.config import settings
from feedbase.db.engine import get_db
from feedbase.db.store import SqlStore


def get_store(db: AsyncSession = Depends(get_db)) -> SqlStore:
    return SqlStore(db)


def principal_dependency(allow_public_scope: bool = False):
    """Build a dependency that resolves the caller's Principal.

    Raises (via the app's error handler) 401 for a bad API key and 403
    for a public-scoped key on a route that doesn't allow one. On success
    the principal and workspace slug are bound into structlog's
    contextvars, so authz.denied lines carry them.
    """

    async def _resolve(
        request: Request, store: SqlStore = Depends(get_store)
    ) -> Principal:
        ctx = RequestContext.from_headers(
            request.headers,
            request.cookies,
            settings.session_cookie_name,
            allow_public_scope=allow_public_scope,
        )
        principal = await IdentityResolver(store).resolve(ctx)

        # Every log line for the rest of the request names the caller and tenant.
        structlog.contextvars.bind_contextvars(principal=describe(principal))
        slug = request.path_params.get("slug")
        if slug:
            structlog.contextvars.bind_contextvars(workspace=slug)
        return principal

    return _resolve


# Default: public-scoped keys are refused.
get_principal = principal_dependency()

# For public read routes (widgets, public boards).
get_public_principal = principal_dependency(allow_public_scope=True)
