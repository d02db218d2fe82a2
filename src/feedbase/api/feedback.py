"""Workspace, board and feedback read routes.

Each route picks its own access flags; the service layer does the rest:

    route                                           login   members  public keys
    GET /workspaces/{slug}                          no      no       yes
    GET /workspaces/{slug}/tags                     yes     yes      no
    GET /workspaces/{slug}/feedback                 yes     yes      no
    GET /workspaces/{slug}/boards/default/feedback  no      private  yes
    GET /boards/{board_id}/feedback                 no      private  yes
    GET /workspaces/{slug}/feedback/{feedback_id}   no      private  yes

"private" means membership is required only when the board is private.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from feedbase.auth.dependencies import get_principal, get_public_principal, get_store
from feedbase.auth.principal import Principal
from feedbase.db.store import SqlStore
from feedbase.schemas.feedback import ERROR_RESPONSES, FeedbackRead, TagRead, WorkspaceRead
from feedbase.services.feedback_service import FeedbackQuery, FeedbackService

router = APIRouter(responses=ERROR_RESPONSES)


def _svc(store: SqlStore = Depends(get_store)) -> FeedbackService:
    return FeedbackService(store)


def feedback_query(
    tags: Optional[str] = Query(None, description="Comma-joined tag names; prefix ! to exclude"),
    status: Optional[str] = Query(None, description="Comma-joined statuses; prefix ! to exclude"),
    board: Optional[str] = Query(None, description="Comma-joined board names or ids; prefix ! to exclude"),
    search: Optional[str] = Query(None, description="Title search; leading ! negates"),
    created_after: Optional[str] = Query(None),
    created_before: Optional[str] = Query(None),
    ca: Optional[str] = Query(None, include_in_schema=False),
    cb: Optional[str] = Query(None, include_in_schema=False),
    sort: Optional[str] = Query(None, description="default, upvotes or trending"),
    tab: Optional[str] = Query(None, description='Status tab; "All" shows everything'),
) -> FeedbackQuery:
    params = {
        "tags": tags,
        "status": status,
        "board": board,
        "search": search,
        "created_after": created_after or ca,
        "created_before": created_before or cb,
        "sort": sort,
        "tab": tab,
    }
    return FeedbackQuery.from_params({k: v for k, v in params.items() if v is not None})


# ─── Workspaces ─────────────────────────────────────────

@router.get("/workspaces/{slug}", response_model=WorkspaceRead)
async def get_workspace(
    slug: str,
    principal: Principal = Depends(get_public_principal),
    svc: FeedbackService = Depends(_svc),
):
    return await svc.get_workspace(principal, slug)


@router.get("/workspaces/{slug}/tags", response_model=list[TagRead])
async def list_tags(
    slug: str,
    principal: Principal = Depends(get_principal),
    svc: FeedbackService = Depends(_svc),
):
    return await svc.list_tags(principal, slug)


# ─── Feedback ───────────────────────────────────────────

@router.get("/workspaces/{slug}/feedback", response_model=list[FeedbackRead])
async def list_workspace_feedback(
    slug: str,
    query: FeedbackQuery = Depends(feedback_query),
    principal: Principal = Depends(get_principal),
    svc: FeedbackService = Depends(_svc),
):
    """All feedback in a workspace, filtered and sorted. Members only."""
    return await svc.list_workspace_feedback(principal, slug, query)


@router.get("/workspaces/{slug}/boards/default/feedback", response_model=list[FeedbackRead])
async def list_default_board_feedback(
    slug: str,
    query: FeedbackQuery = Depends(feedback_query),
    principal: Principal = Depends(get_public_principal),
    svc: FeedbackService = Depends(_svc),
):
    """Feedback on the workspace's default board — the public hub view."""
    return await svc.list_board_feedback(principal, query, workspace_slug=slug)


@router.get("/boards/{board_id}/feedback", response_model=list[FeedbackRead])
async def list_board_feedback(
    board_id: uuid.UUID,
    query: FeedbackQuery = Depends(feedback_query),
    principal: Principal = Depends(get_public_principal),
    svc: FeedbackService = Depends(_svc),
):
    return await svc.list_board_feedback(principal, query, board_id=board_id)


@router.get("/workspaces/{slug}/feedback/{feedback_id}", response_model=FeedbackRead)
async def get_feedback(
    slug: str,
    feedback_id: uuid.UUID,
    principal: Principal = Depends(get_public_principal),
    svc: FeedbackService = Depends(_svc),
):
    return await svc.get_feedback(principal, feedback_id, slug)
