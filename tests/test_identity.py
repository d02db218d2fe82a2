"""Identity resolution tests.

Covers:
1. API key precedence over the session cookie
2. Invalid, expired and orphaned API keys → 401
3. Public-scoped keys → 403 unless the operation allows public access
4. Sessions: valid → SessionUser; missing/expired/garbage → Anonymous
"""

import uuid

import pytest

from feedbase.auth.identity import IdentityResolver, RequestContext
from feedbase.auth.jwt import create_session_token
from feedbase.auth.principal import ANONYMOUS, Anonymous, ServiceAccount, SessionUser
from feedbase.domain import ApiKeyScope
from feedbase.errors import Forbidden, Unauthenticated


# ═══════════════════════════════════════════════════════════
# API keys
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_full_access_key_resolves_to_owner(store, world):
    principal = await IdentityResolver(store).resolve(
        RequestContext(service_credential=world.full_key)
    )
    assert isinstance(principal, ServiceAccount)
    assert principal.owner_id == world.owner.id
    assert principal.scope is ApiKeyScope.FULL_ACCESS
    assert principal.workspace_id == world.acme.id


@pytest.mark.asyncio
async def test_api_key_takes_precedence_over_session(store, world):
    """A present service credential wins, even next to a valid session."""
    ctx = RequestContext(
        session_token=create_session_token(world.outsider.id),
        service_credential=world.full_key,
    )
    principal = await IdentityResolver(store).resolve(ctx)
    assert isinstance(principal, ServiceAccount)
    assert principal.owner_id == world.owner.id


@pytest.mark.asyncio
async def test_invalid_key_is_unauthenticated(store, world):
    with pytest.raises(Unauthenticated) as exc:
        await IdentityResolver(store).resolve(
            RequestContext(service_credential="fb_not-a-real-key")
        )
    assert exc.value.status == 401


@pytest.mark.asyncio
async def test_invalid_key_does_not_fall_back_to_session(store, world):
    ctx = RequestContext(
        session_token=create_session_token(world.owner.id),
        service_credential="fb_bogus",
    )
    with pytest.raises(Unauthenticated):
        await IdentityResolver(store).resolve(ctx)


@pytest.mark.asyncio
async def test_expired_key_is_unauthenticated(store, world):
    with pytest.raises(Unauthenticated):
        await IdentityResolver(store).resolve(
            RequestContext(service_credential=world.expired_key)
        )


@pytest.mark.asyncio
async def test_orphaned_key_is_unauthenticated(store, world, db_session):
    await db_session.delete(world.owner)
    await db_session.commit()

    with pytest.raises(Unauthenticated):
        await IdentityResolver(store).resolve(
            RequestContext(service_credential=world.full_key)
        )


@pytest.mark.asyncio
async def test_orphaned_public_key_on_private_route_is_forbidden(store, world, db_session):
    """Scope is checked before the owner lookup."""
    await db_session.delete(world.owner)
    await db_session.commit()

    with pytest.raises(Forbidden):
        await IdentityResolver(store).resolve(
            RequestContext(service_credential=world.public_key)
        )


@pytest.mark.asyncio
async def test_public_key_forbidden_without_public_access(store, world):
    """Scope is necessary but not sufficient."""
    with pytest.raises(Forbidden) as exc:
        await IdentityResolver(store).resolve(
            RequestContext(service_credential=world.public_key)
        )
    assert exc.value.status == 403
    assert exc.value.message == "unauthorized, missing permissions."


@pytest.mark.asyncio
async def test_public_key_allowed_on_public_operation(store, world):
    principal = await IdentityResolver(store).resolve(
        RequestContext(service_credential=world.public_key, allow_public_scope=True)
    )
    assert isinstance(principal, ServiceAccount)
    assert principal.scope is ApiKeyScope.PUBLIC_ACCESS


# ═══════════════════════════════════════════════════════════
# Sessions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_valid_session_resolves_to_user(store, world):
    principal = await IdentityResolver(store).resolve(
        RequestContext(session_token=create_session_token(world.owner.id))
    )
    assert principal == SessionUser(id=world.owner.id)


@pytest.mark.asyncio
async def test_no_credentials_is_anonymous(store, world):
    principal = await IdentityResolver(store).resolve(RequestContext())
    assert principal is ANONYMOUS


@pytest.mark.asyncio
async def test_expired_session_is_anonymous(store, world):
    token = create_session_token(world.owner.id, expires_minutes=-1)
    principal = await IdentityResolver(store).resolve(RequestContext(session_token=token))
    assert isinstance(principal, Anonymous)


@pytest.mark.asyncio
async def test_garbage_session_is_anonymous(store, world):
    principal = await IdentityResolver(store).resolve(
        RequestContext(session_token="not.a.jwt")
    )
    assert isinstance(principal, Anonymous)


@pytest.mark.asyncio
async def test_session_for_unknown_user_is_anonymous(store, world):
    token = create_session_token(uuid.uuid4())
    principal = await IdentityResolver(store).resolve(RequestContext(session_token=token))
    assert isinstance(principal, Anonymous)


# ═══════════════════════════════════════════════════════════
# RequestContext
# ═══════════════════════════════════════════════════════════


def test_context_reads_bearer_and_cookie():
    ctx = RequestContext.from_headers(
        {"authorization": "Bearer fb_abc"},
        {"sess": "tok"},
        cookie_name="sess",
        allow_public_scope=True,
    )
    assert ctx.service_credential == "fb_abc"
    assert ctx.session_token == "tok"
    assert ctx.allow_public_scope is True


def test_context_malformed_authorization_is_empty_credential():
    ctx = RequestContext.from_headers({"authorization": "fb_abc"}, {}, cookie_name="sess")
    assert ctx.service_credential == ""
    assert ctx.session_token is None
