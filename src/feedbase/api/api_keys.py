"""Workspace API key routes.

- GET /workspaces/:slug/api-keys → list keys (prefix only)
- POST /workspaces/:slug/api-keys → create key (returns key once!)

Members with a login or a full-access key only; public keys are refused.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from feedbase.auth.dependencies import get_principal
from feedbase.auth.principal import Principal
from feedbase.db.engine import get_db
from feedbase.schemas.feedback import ERROR_RESPONSES, ApiKeyCreate, ApiKeyCreated, ApiKeyRead
from feedbase.services.api_key_service import ApiKeyService

router = APIRouter(responses=ERROR_RESPONSES)


def _svc(db: AsyncSession = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(db)


@router.post("/workspaces/{slug}/api-keys", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    slug: str,
    body: ApiKeyCreate,
    principal: Principal = Depends(get_principal),
    svc: ApiKeyService = Depends(_svc),
):
    api_key, key = await svc.create_key(
        principal,
        slug,
        name=body.name,
        scope=body.permission,
        expires_days=body.expires_days,
    )
    return ApiKeyCreated(
        id=api_key.id,
        name=api_key.name,
        prefix=api_key.prefix,
        permission=api_key.permission,
        created_at=api_key.created_at,
        expires_at=api_key.expires_at,
        key=key,
    )


@router.get("/workspaces/{slug}/api-keys", response_model=list[ApiKeyRead])
async def list_api_keys(
    slug: str,
    principal: Principal = Depends(get_principal),
    svc: ApiKeyService = Depends(_svc),
):
    return await svc.list_keys(principal, slug)
