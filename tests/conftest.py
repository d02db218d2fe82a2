"""Test fixtures — in-memory SQLite database seeded with two workspaces.

Each test gets a fresh aiosqlite engine (StaticPool, so every session
sees the same in-memory database), creates all tables, and seeds:

    acme   (owner is a member)
      ├── Feature Requests  public, default board
      │     ├── "Add dark mode"  tags=[bug]  planned  2024-01-01  5 upvotes
      │     └── "Fix login bug"  tags=[ui]   done     2024-02-01  2 upvotes
      └── Internal          private
            └── "Secret roadmap"            open     2024-03-01
    globex (outsider is a member)
      └── Roadmap           public, default board
            └── "Globex request"

API keys on acme, all created by owner: full, public and expired.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from feedbase.auth.api_keys import generate_api_key
from feedbase.auth.jwt import create_session_token
from feedbase.config import settings
from feedbase.db import models
from feedbase.db.engine import get_db
from feedbase.db.store import SqlStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest_asyncio.fixture()
async def db_session():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


def _api_key(workspace, creator, name, permission, expires_at=None):
    key, prefix, key_hash = generate_api_key()
    row = models.ApiKey(
        workspace_id=workspace.id,
        creator_id=creator.id,
        name=name,
        key_hash=key_hash,
        prefix=prefix,
        permission=permission,
        expires_at=expires_at,
    )
    return row, key


@pytest_asyncio.fixture()
async def world(db_session):
    """Seed the scenario described in the module docstring."""
    db = db_session

    owner = models.User(email="owner@acme.test", name="Owner")
    outsider = models.User(email="outsider@globex.test", name="Outsider")
    db.add_all([owner, outsider])
    await db.flush()

    acme = models.Workspace(name="Acme", slug="acme")
    globex = models.Workspace(name="Globex", slug="globex")
    db.add_all([acme, globex])
    await db.flush()

    db.add_all([
        models.WorkspaceMember(workspace_id=acme.id, user_id=owner.id, role="owner"),
        models.WorkspaceMember(workspace_id=globex.id, user_id=outsider.id, role="owner"),
    ])

    public_board = models.FeedbackBoard(workspace_id=acme.id, name="Feature Requests")
    private_board = models.FeedbackBoard(workspace_id=acme.id, name="Internal", private=True)
    globex_board = models.FeedbackBoard(workspace_id=globex.id, name="Roadmap")
    db.add_all([public_board, private_board, globex_board])
    await db.flush()

    db.add_all([
        models.WorkspaceModule(workspace_id=acme.id, feedback_default_board_id=public_board.id),
        models.WorkspaceModule(workspace_id=globex.id, feedback_default_board_id=globex_board.id),
    ])

    bug = models.FeedbackTag(workspace_id=acme.id, name="bug", color="red")
    ui = models.FeedbackTag(workspace_id=acme.id, name="ui", color="blue")
    db.add_all([bug, ui])
    await db.flush()

    f1 = models.Feedback(
        board_id=public_board.id, workspace_id=acme.id, user_id=owner.id,
        title="Add dark mode", status="planned", tags=[bug],
        created_at=utc(2024, 1, 1), upvotes=5, comment_count=1,
    )
    f2 = models.Feedback(
        board_id=public_board.id, workspace_id=acme.id, user_id=owner.id,
        title="Fix login bug", status="done", tags=[ui],
        created_at=utc(2024, 2, 1), upvotes=2, comment_count=0,
    )
    secret = models.Feedback(
        board_id=private_board.id, workspace_id=acme.id, user_id=owner.id,
        title="Secret roadmap", status="open", tags=[],
        created_at=utc(2024, 3, 1), upvotes=9, comment_count=3,
    )
    foreign = models.Feedback(
        board_id=globex_board.id, workspace_id=globex.id, user_id=outsider.id,
        title="Globex request", status="open", tags=[], created_at=utc(2024, 1, 15),
    )
    db.add_all([f1, f2, secret, foreign])

    full_row, full_key = _api_key(acme, owner, "server", "full_access")
    public_row, public_key = _api_key(acme, owner, "widget", "public_access")
    expired_row, expired_key = _api_key(
        acme, owner, "old", "full_access",
        expires_at=datetime.now(timezone.utc) - timedelta(days=1),
    )
    db.add_all([full_row, public_row, expired_row])

    await db.commit()

    return SimpleNamespace(
        owner=owner,
        outsider=outsider,
        acme=acme,
        globex=globex,
        public_board=public_board,
        private_board=private_board,
        globex_board=globex_board,
        bug=bug,
        ui=ui,
        f1=f1,
        f2=f2,
        secret=secret,
        foreign=foreign,
        full_key=full_key,
        public_key=public_key,
        expired_key=expired_key,
    )


@pytest_asyncio.fixture()
async def store(db_session):
    return SqlStore(db_session)


def session_cookie(user) -> dict:
    """Headers carrying a valid session cookie for a user."""
    token = create_session_token(user.id)
    return {"Cookie": f"{settings.session_cookie_name}={token}"}


def bearer(key: str) -> dict:
    return {"Authorization": f"Bearer {key}"}


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db overridden to the test database.

    Auth is not overridden: tests send real session cookies and API keys.
    """
    from feedbase.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
