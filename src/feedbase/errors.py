"""Error taxonomy shared by the auth layer, the filter parser and the API.

Every error carries a human-readable ``message`` and a machine-readable
``status`` (the HTTP status the transport maps it to). The pair is the
stable contract surfaced to clients as ``{"message": ..., "status": ...}``.
"""


class FeedbaseError(Exception):
    """Base error. Subclasses pin the status code."""

    status: int = 500
    default_message: str = "internal server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# Authorization failures and validation failures share one shape.
AuthError = FeedbaseError


class ValidationError(FeedbaseError):
    """Malformed input (e.g. an unknown board in a filter)."""

    status = 400
    default_message = "invalid request."


class Unauthenticated(FeedbaseError):
    """No valid principal where one is required."""

    status = 401
    default_message = "unauthorized, login required."


class Forbidden(FeedbaseError):
    """Valid principal lacking permission."""

    status = 403
    default_message = "unauthorized, missing permissions."


class NotFound(FeedbaseError):
    status = 404
    default_message = "not found."


class InternalError(FeedbaseError):
    """Collaborator failure. Never carries storage error text."""

    status = 500
