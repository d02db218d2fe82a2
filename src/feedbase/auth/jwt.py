"""Session token creation and verification.

The session cookie carries a signed JWT whose subject is the user id.
Tokens are stateless; expiry is enforced by PyJWT on decode.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from feedbase.config import settings

SESSION_TOKEN_TYPE = "session"


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_session_token(
    user_id: uuid.UUID | str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed session JWT for a user."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or settings.session_expire_minutes
    )
    payload = {
        "sub": str(user_id),
        "type": SESSION_TOKEN_TYPE,
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")


def session_user_id(token: str) -> uuid.UUID:
    """Decode a session token down to the user id it names.

    Raises TokenError when the token is invalid, expired, not a session
    token, or its subject is not a user id.
    """
    payload = verify_token(token)
    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise TokenError("Not a session token")
    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise TokenError("Invalid token subject")
