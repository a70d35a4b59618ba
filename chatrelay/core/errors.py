"""Error taxonomy shared by the relay server and the chat client.

Every failure is terminal for the exchange it belongs to; nothing here is
retried. The server renders a RelayError as ``{"error": message}`` with its
``status_code``; the client turns it into an inline error on the reply.
"""
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    DECODE = "decode"


class RelayError(Exception):
    """Base class.

    Attributes:
        message: human readable description, sent to callers as-is.
        status_code: HTTP status used when the error reaches the API layer.
    """

    kind = ErrorKind.TRANSPORT
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class InvalidRequest(RelayError):
    """Malformed or missing input. Surfaced immediately, never forwarded upstream."""

    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class UpstreamError(RelayError):
    """Upstream answered with a non-OK status or a malformed body."""

    kind = ErrorKind.UPSTREAM


class TransportError(RelayError):
    """Network failure contacting upstream, or a connection broken mid-stream."""

    kind = ErrorKind.TRANSPORT


class DecodeError(RelayError):
    """Bytes that are not valid UTF-8."""

    kind = ErrorKind.DECODE
