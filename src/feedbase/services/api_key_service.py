"""API key service — create and list workspace API keys.

Only full-access members may manage keys. The secret is returned once,
from create_key(); afterwards only its prefix is ever shown.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedbase.auth.api_keys import generate_api_key
from feedbase.auth.authorizer import Authorizer
from feedbase.auth.decisions import WorkspaceAccess
from feedbase.auth.principal import Principal
from feedbase.db.models import ApiKey
from feedbase.db.store import SqlStore
from feedbase.domain import ApiKeyScope

logger = structlog.get_logger()


class ApiKeyService:
    """Business logic for workspace API keys."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.authorizer = Authorizer(SqlStore(db))

    async def _member_access(self, principal: Principal, slug: str) -> WorkspaceAccess:
        return (await self.authorizer.authorize_workspace(principal, slug)).unwrap()

    async def create_key(
        self,
        principal: Principal,
        slug: str,
        name: str,
        scope: ApiKeyScope = ApiKeyScope.FULL_ACCESS,
        expires_days: Optional[int] = None,
    ) -> tuple[ApiKey, str]:
        """Create a key. Returns (row, full_key) — the key is never stored."""
        access = await self._member_access(principal, slug)
        user = (await self.authorizer.authorize_user(principal)).unwrap()

        key, prefix, key_hash = generate_api_key()
        expires_at = None
        if expires_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_days)

        api_key = ApiKey(
            workspace_id=access.workspace.id,
            creator_id=user.user_id,
            name=name,
            key_hash=key_hash,
            prefix=prefix,
            permission=scope.value,
            expires_at=expires_at,
        )
        self.db.add(api_key)
        await self.db.commit()
        await self.db.refresh(api_key)

        logger.info(
            "api_key.created",
            workspace=slug,
            key_id=str(api_key.id),
            scope=scope.value,
        )
        return api_key, key

    async def list_keys(self, principal: Principal, slug: str) -> list[ApiKey]:
        access = await self._member_access(principal, slug)
        result = await self.db.execute(
            select(ApiKey)
            .where(ApiKey.workspace_id == access.workspace.id)
            .order_by(ApiKey.created_at.desc())
        )
        return list(result.scalars().all())
