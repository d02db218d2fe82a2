"""Auth API — who am I.

GET /auth/me resolves the caller's credentials and requires a login
(session cookie or API key); anonymous callers get 401.
"""

from fastapi import APIRouter, Depends

from feedbase.auth.authorizer import Authorizer
from feedbase.auth.dependencies import get_principal, get_store
from feedbase.auth.principal import Principal, ServiceAccount
from feedbase.db.store import SqlStore
from feedbase.schemas.feedback import ERROR_RESPONSES, MeRead

router = APIRouter(prefix="/auth", responses=ERROR_RESPONSES)


@router.get("/me", response_model=MeRead)
async def me(
    principal: Principal = Depends(get_principal),
    store: SqlStore = Depends(get_store),
):
    access = (await Authorizer(store).authorize_user(principal)).unwrap()
    identity_type = "api_key" if isinstance(principal, ServiceAccount) else "user"
    return MeRead(user_id=access.user_id, identity_type=identity_type)
