"""Response headers for an embeddable, credentialed API.

Public boards are embedded as widgets on customer sites, so framing is
controlled with a CSP ``frame-ancestors`` list built from
``settings.embed_origins`` instead of a blanket deny. With no embed
origins configured only same-origin framing is allowed.

Responses to requests that carry a credential (API key or session
cookie) may contain private-board or members-only feedback, so they are
marked ``Cache-Control: private, no-store`` unless the route set its own
caching policy.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from feedbase.config import settings


def frame_ancestors() -> str:
    return " ".join(["'self'", *settings.embed_origins])


def carries_credentials(request: Request) -> bool:
    return (
        "authorization" in request.headers
        or settings.session_cookie_name in request.cookies
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add framing, sniffing, referrer and caching headers."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        headers = response.headers

        headers["X-Content-Type-Options"] = "nosniff"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        headers["Content-Security-Policy"] = f"frame-ancestors {frame_ancestors()}"
        if not settings.embed_origins:
            # Older browsers ignore frame-ancestors.
            headers["X-Frame-Options"] = "SAMEORIGIN"

        if carries_credentials(request) and "cache-control" not in headers:
            headers["Cache-Control"] = "private, no-store"

        if request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
