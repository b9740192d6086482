"""Error taxonomy shared by the weather and assistant handlers.

Each error carries two messages: the exception text, which is logged and may
contain provider detail, and ``public_message``, the only text a caller ever
sees in the JSON error body.
"""

from __future__ import annotations

from typing import Optional


class CongestiqError(Exception):
    """Base class for errors the HTTP layer knows how to render."""
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, public_message: Optional[str] = None):
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(CongestiqError):
    """A required credential or setting is missing."""
    status_code = 500
    public_message = "Server configuration error"


class InvalidInputError(CongestiqError):
    """The request body is malformed or incomplete."""
    status_code = 400
    public_message = "Invalid request"


class UpstreamFetchError(CongestiqError):
    """A required third-party call failed or returned a non-success status."""
    status_code = 500
    public_message = "Upstream service unavailable"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status: Optional[int] = None,
        public_message: Optional[str] = None,
    ):
        super().__init__(message, public_message=public_message)
        self.status = status


class InternalError(CongestiqError):
    """Unexpected failure, reported with a sanitized message."""
    status_code = 500
    public_message = "Internal server error"
