"""Feedbase CLI — browse feedback boards from the terminal.

Usage:
    feedbase workspace acme                              # Workspace info
    feedbase feedback acme                               # Default board, newest first
    feedbase feedback acme --board <uuid> --sort trending
    feedbase feedback acme --all --tags bug,!wontfix --status !done
    feedbase token <user-uuid>                           # Issue a local session token

Credentials come from the environment:
    FEEDBASE_API_KEY   → sent as "Authorization: Bearer <key>"
    FEEDBASE_SESSION   → sent as the session cookie
    FEEDBASE_API_URL   → server base URL (default http://localhost:8000)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
import uuid
from typing import Optional

import click
import httpx

from feedbase.config import settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("FEEDBASE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client carrying whatever credentials are set."""
    headers = {}
    cookies = {}
    api_key = os.environ.get("FEEDBASE_API_KEY")
    session = os.environ.get("FEEDBASE_SESSION")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    if session:
        cookies[settings.session_cookie_name] = session
    return httpx.AsyncClient(
        base_url=_api_url(), headers=headers, cookies=cookies, timeout=30.0
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail_on_error(r: httpx.Response) -> None:
    """Print the server's {message, status} error and exit non-zero."""
    if r.is_success:
        return
    try:
        message = r.json().get("message") or r.text
    except ValueError:
        message = r.text
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _status_color(status: Optional[str]) -> str:
    colors = {
        "open": "white",
        "under review": "cyan",
        "planned": "blue",
        "in progress": "yellow",
        "completed": "green",
        "done": "green",
        "rejected": "red",
    }
    return colors.get((status or "").lower(), "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="feedbase")
def main():
    """Feedbase — browse workspaces and feedback boards."""


# ---------------------------------------------------------------------------
# feedbase workspace
# ---------------------------------------------------------------------------


@main.command()
@click.argument("slug")
def workspace(slug: str):
    """Show a workspace by SLUG."""
    _run(_workspace_impl(slug))


async def _workspace_impl(slug: str):
    async with _client() as c:
        r = await c.get(f"/api/v1/workspaces/{slug}")
        _fail_on_error(r)
        ws = r.json()
        click.secho(ws["name"] or ws["slug"], bold=True)
        click.echo(f"  slug: {ws['slug']}")
        click.echo(f"  id:   {ws['id']}")


# ---------------------------------------------------------------------------
# feedbase feedback
# ---------------------------------------------------------------------------


@main.command()
@click.argument("slug")
@click.option("--board", "board_id", help="Board UUID (default board if omitted)")
@click.option("--all", "all_boards", is_flag=True, help="Whole workspace (members only)")
@click.option("--tags", help="Comma-joined tag names, prefix ! to exclude")
@click.option("--status", help="Comma-joined statuses, prefix ! to exclude")
@click.option("--board-filter", help="Comma-joined board names (with --all)")
@click.option("--search", help="Title search, leading ! negates")
@click.option("--after", help="Created on/after (ISO date)")
@click.option("--before", help="Created on/before (ISO date)")
@click.option("--sort", type=click.Choice(["default", "upvotes", "trending"]), default="default")
@click.option("--tab", help='Status tab ("All" for everything)')
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def feedback(slug: str, board_id: Optional[str], all_boards: bool, tags: Optional[str],
             status: Optional[str], board_filter: Optional[str], search: Optional[str],
             after: Optional[str], before: Optional[str], sort: str, tab: Optional[str],
             as_json: bool):
    """List feedback in workspace SLUG, filtered and sorted."""
    if board_id and all_boards:
        raise click.UsageError("--board and --all are mutually exclusive")
    params = {
        "tags": tags,
        "status": status,
        "board": board_filter,
        "search": search,
        "created_after": after,
        "created_before": before,
        "sort": sort,
        "tab": tab,
    }
    params = {k: v for k, v in params.items() if v}
    _run(_feedback_impl(slug, board_id, all_boards, params, as_json))


async def _feedback_impl(slug: str, board_id: Optional[str], all_boards: bool,
                         params: dict, as_json: bool):
    if all_boards:
        path = f"/api/v1/workspaces/{slug}/feedback"
    elif board_id:
        path = f"/api/v1/boards/{board_id}/feedback"
    else:
        path = f"/api/v1/workspaces/{slug}/boards/default/feedback"

    async with _client() as c:
        r = await c.get(path, params=params)
        _fail_on_error(r)
        items = r.json()

    if as_json:
        click.echo(_pretty_json(items))
        return

    if not items:
        click.echo("No feedback found.")
        return

    click.secho(f"Feedback ({len(items)}):", bold=True)
    click.echo()
    for f in items:
        status_str = click.style(f.get("status") or "—", fg=_status_color(f.get("status")))
        tag_str = ", ".join(t["name"] for t in f.get("tags", []))
        click.echo(
            f"  {f['id'][:8]}  {f['upvotes']:>4d} up  {f['comment_count']:>4d} comments  "
            f"{f['title'][:60]:60s}  {status_str}  {tag_str}"
        )


# ---------------------------------------------------------------------------
# feedbase token
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.option("--minutes", type=int, default=None, help="Lifetime in minutes")
def token(user_id: str, minutes: Optional[int]):
    """Issue a session token for USER_ID, signed with FEEDBASE_JWT_SECRET."""
    from feedbase.auth.jwt import create_session_token

    try:
        uid = uuid.UUID(user_id)
    except ValueError:
        raise click.BadParameter("must be a UUID", param_hint="USER_ID")
    click.echo(create_session_token(uid, expires_minutes=minutes))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
