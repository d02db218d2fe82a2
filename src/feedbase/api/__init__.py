"""API route aggregation.

All routers registered here get mounted in main.py.

Auth is not applied at the include_router level: each route resolves
its own Principal and picks its own access flags, because whether a
route is public depends on the board it reaches, not on the URL prefix.
"""

from fastapi import APIRouter

from feedbase.api.api_keys import router as api_keys_router
from feedbase.api.auth import router as auth_router
from feedbase.api.feedback import router as feedback_router
from feedbase.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(feedback_router, tags=["workspaces", "boards", "feedback"])
api_router.include_router(api_keys_router, tags=["api-keys"])
