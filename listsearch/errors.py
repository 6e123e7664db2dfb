# listsearch/errors.py
from typing import Optional


class ListSearchError(Exception):
    """Base for errors surfaced to callers of the search flow."""

    code = "InternalError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.code


class AuthError(ListSearchError):
    """Missing, invalid or expired token, or a token for another tenant."""

    code = "Unauthorized"


class NotFoundError(ListSearchError):
    code = "NotFound"


class MalformedPayloadError(ListSearchError):
    """A payload that should be JSON (usually from the QnA service) did not parse."""

    code = "MalformedPayload"


class RemoteServiceError(ListSearchError):
    code = "RemoteServiceError"

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(ListSearchError, ValueError):
    """Caller input the flow cannot act on (empty kb id, unknown kb field names)."""

    code = "BadRequest"
