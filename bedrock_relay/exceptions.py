"""
Error types raised while relaying a chat turn.

Everything raised on the request path derives from RelayError so the
endpoint can turn it into the JSON error envelope in one place.
"""
from typing import Optional


class RelayError(Exception):
    """
    Base class for relay failures.

    Attributes:
        message: Human readable error text, returned to the caller as-is
        status_code: HTTP status to respond with, or None when there is none
    """

    default_status: Optional[int] = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status

    @property
    def http_status(self) -> int:
        """Status to send to the client; anything below 400 falls back to 500."""
        if self.status_code is not None and self.status_code >= 400:
            return self.status_code
        return 500


class ConfigurationError(RelayError):
    """The relay is missing configuration it needs to call upstream."""


class ClientInputError(RelayError):
    """The inbound chat request is unusable."""

    default_status = 400


class NotFoundError(RelayError):
    """No route for this method and path."""

    default_status = 404

    def __init__(self, message: str = "Not found", status_code: Optional[int] = None):
        super().__init__(message, status_code)


class UpstreamHttpError(RelayError):
    """Bedrock answered with a non-success status."""

    def __init__(self, status_code: int, body: str = "", message: Optional[str] = None):
        super().__init__(message or f"Bedrock error {status_code}: {body}", status_code)
        self.body = body


class TransportError(RelayError):
    """Bedrock could not be reached at all (DNS, connection, TLS, timeout)."""

    default_status = None
