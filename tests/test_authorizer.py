"""Authorizer tests — every chain against the seeded database.

Covers:
1. Workspace: login, existence before membership, anon access flag
2. Board: by id or default board, privacy always enforced
3. Feedback: cross-workspace slugs, private boards
4. Service accounts: public scope never counts, and a key only counts
   in the workspace that issued it
5. Decisions: allowed/reason/status and unwrap()
"""

import uuid

import pytest

from feedbase.auth.authorizer import NOT_A_MEMBER, Authorizer
from feedbase.auth.decisions import Denied
from feedbase.auth.principal import ANONYMOUS, ServiceAccount, SessionUser
from feedbase.domain import ApiKeyScope
from feedbase.errors import Forbidden, NotFound, Unauthenticated, ValidationError


@pytest.fixture
def authz(store):
    return Authorizer(store)


def _user(row):
    return SessionUser(id=row.id)


def _key(row, workspace, scope=ApiKeyScope.FULL_ACCESS):
    return ServiceAccount(owner_id=row.id, scope=scope, workspace_id=workspace.id)


# ═══════════════════════════════════════════════════════════
# User
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_user_requires_login(authz, world):
    decision = await authz.authorize_user(ANONYMOUS)
    assert isinstance(decision, Denied)
    assert decision.status == 401
    assert decision.reason == "unauthorized, login required."


@pytest.mark.asyncio
async def test_user_service_account_acts_as_owner(authz, world):
    decision = await authz.authorize_user(_key(world.owner, world.acme))
    assert decision.allowed
    assert decision.user_id == world.owner.id


# ═══════════════════════════════════════════════════════════
# Workspace
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_workspace_member_allowed(authz, world):
    decision = await authz.authorize_workspace(_user(world.owner), "acme")
    assert decision.allowed
    assert decision.status == 200
    assert decision.workspace.id == world.acme.id


@pytest.mark.asyncio
async def test_workspace_non_member_forbidden(authz, world):
    decision = await authz.authorize_workspace(_user(world.outsider), "acme")
    assert not decision.allowed
    assert decision.status == 403
    assert decision.reason == NOT_A_MEMBER


@pytest.mark.asyncio
async def test_workspace_anonymous_needs_login(authz, world):
    decision = await authz.authorize_workspace(ANONYMOUS, "acme")
    assert decision.status == 401


@pytest.mark.asyncio
async def test_workspace_missing_is_404_even_for_outsiders(authz, world):
    """Existence is checked before membership."""
    decision = await authz.authorize_workspace(_user(world.outsider), "nope")
    assert decision.status == 404
    assert decision.reason == "workspace not found."


@pytest.mark.asyncio
async def test_workspace_login_checked_before_existence(authz, world):
    decision = await authz.authorize_workspace(ANONYMOUS, "nope")
    assert decision.status == 401


@pytest.mark.asyncio
async def test_workspace_anon_access_skips_membership_only(authz, world):
    # allow_anon_access alone still needs a login.
    denied = await authz.authorize_workspace(ANONYMOUS, "acme", allow_anon_access=True)
    assert denied.status == 401

    allowed = await authz.authorize_workspace(
        ANONYMOUS, "acme", allow_anon_access=True, require_login=False
    )
    assert allowed.allowed

    outsider = await authz.authorize_workspace(
        _user(world.outsider), "acme", allow_anon_access=True
    )
    assert outsider.allowed


@pytest.mark.asyncio
async def test_workspace_full_key_counts_as_member(authz, world):
    decision = await authz.authorize_workspace(_key(world.owner, world.acme), "acme")
    assert decision.allowed


@pytest.mark.asyncio
async def test_workspace_public_key_never_counts_as_member(authz, world):
    decision = await authz.authorize_workspace(
        _key(world.owner, world.acme, ApiKeyScope.PUBLIC_ACCESS), "acme"
    )
    assert decision.status == 403


@pytest.mark.asyncio
async def test_full_key_only_counts_in_its_own_workspace(authz, world, db_session):
    """The owner joins globex too; the acme key still doesn't open globex."""
    from feedbase.db import models

    db_session.add(
        models.WorkspaceMember(workspace_id=world.globex.id, user_id=world.owner.id)
    )
    await db_session.commit()

    as_key = await authz.authorize_workspace(_key(world.owner, world.acme), "globex")
    as_user = await authz.authorize_workspace(_user(world.owner), "globex")

    assert as_key.status == 403
    assert as_key.reason == NOT_A_MEMBER
    assert as_user.allowed


@pytest.mark.asyncio
async def test_full_key_cannot_open_private_board_elsewhere(authz, world, db_session):
    from feedbase.db import models

    db_session.add(
        models.WorkspaceMember(workspace_id=world.acme.id, user_id=world.outsider.id)
    )
    await db_session.commit()

    decision = await authz.authorize_board(
        _key(world.outsider, world.globex), board_id=world.private_board.id
    )
    assert isinstance(decision.error, Forbidden)


@pytest.mark.asyncio
async def test_membership_read_fresh_each_call(authz, world, db_session):
    from feedbase.db import models

    principal = _user(world.outsider)
    assert not (await authz.authorize_workspace(principal, "acme")).allowed

    db_session.add(
        models.WorkspaceMember(workspace_id=world.acme.id, user_id=world.outsider.id)
    )
    await db_session.commit()

    assert (await authz.authorize_workspace(principal, "acme")).allowed


# ═══════════════════════════════════════════════════════════
# Board
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_public_board_anonymous_without_login(authz, world):
    decision = await authz.authorize_board(
        ANONYMOUS, board_id=world.public_board.id, require_login=False
    )
    assert decision.allowed
    assert decision.board.id == world.public_board.id


@pytest.mark.asyncio
async def test_board_requires_login_by_default(authz, world):
    decision = await authz.authorize_board(ANONYMOUS, board_id=world.public_board.id)
    assert decision.status == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("who", ["anonymous", "outsider", "public_key"])
async def test_private_board_denied_to_non_members(authz, world, who):
    principal = {
        "anonymous": ANONYMOUS,
        "outsider": _user(world.outsider),
        "public_key": _key(world.owner, world.acme, ApiKeyScope.PUBLIC_ACCESS),
    }[who]
    decision = await authz.authorize_board(
        principal, board_id=world.private_board.id, require_login=False
    )
    assert isinstance(decision, Denied)
    assert isinstance(decision.error, Forbidden)


@pytest.mark.asyncio
async def test_private_board_allowed_to_member(authz, world):
    decision = await authz.authorize_board(
        _user(world.owner), board_id=world.private_board.id
    )
    assert decision.allowed


@pytest.mark.asyncio
async def test_default_board_by_slug(authz, world):
    decision = await authz.authorize_board(
        ANONYMOUS, workspace_slug="globex", require_login=False
    )
    assert decision.board.id == world.globex_board.id


@pytest.mark.asyncio
async def test_default_board_missing_workspace(authz, world):
    decision = await authz.authorize_board(
        ANONYMOUS, workspace_slug="nope", require_login=False
    )
    assert decision.status == 404
    assert decision.reason == "workspace not found."


@pytest.mark.asyncio
async def test_unknown_board_is_404(authz, world):
    decision = await authz.authorize_board(
        _user(world.owner), board_id=uuid.uuid4()
    )
    assert isinstance(decision.error, NotFound)
    assert decision.reason == "feedback board not found."


@pytest.mark.asyncio
async def test_board_needs_id_or_slug(authz, world):
    decision = await authz.authorize_board(_user(world.owner))
    assert isinstance(decision.error, ValidationError)
    assert decision.status == 400


# ═══════════════════════════════════════════════════════════
# Feedback
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_feedback_on_public_board(authz, world):
    decision = await authz.authorize_feedback(
        ANONYMOUS, world.f1.id, "acme", require_login=False
    )
    assert decision.allowed
    assert decision.feedback.title == "Add dark mode"
    assert decision.board.id == world.public_board.id
    assert decision.workspace.slug == "acme"


@pytest.mark.asyncio
async def test_feedback_on_private_board_needs_membership(authz, world):
    anon = await authz.authorize_feedback(
        ANONYMOUS, world.secret.id, "acme", require_login=False
    )
    member = await authz.authorize_feedback(_user(world.owner), world.secret.id, "acme")
    assert anon.status == 403
    assert member.allowed


@pytest.mark.asyncio
async def test_feedback_under_wrong_workspace_is_not_found(authz, world):
    """A post is only reachable through the workspace that owns its board."""
    decision = await authz.authorize_feedback(
        _user(world.outsider), world.f1.id, "globex"
    )
    assert decision.status == 404
    assert decision.reason == "feedback not found."


@pytest.mark.asyncio
async def test_feedback_missing(authz, world):
    decision = await authz.authorize_feedback(_user(world.owner), uuid.uuid4(), "acme")
    assert decision.reason == "feedback not found."


@pytest.mark.asyncio
async def test_feedback_missing_workspace_reported_first(authz, world):
    decision = await authz.authorize_feedback(_user(world.owner), uuid.uuid4(), "nope")
    assert decision.reason == "workspace not found."


# ═══════════════════════════════════════════════════════════
# Decisions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_unwrap(authz, world):
    granted = await authz.authorize_workspace(_user(world.owner), "acme")
    assert granted.unwrap() is granted

    denied = await authz.authorize_workspace(ANONYMOUS, "acme")
    with pytest.raises(Unauthenticated):
        denied.unwrap()
