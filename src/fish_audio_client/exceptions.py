"""
Typed errors raised by the client.

Every failure seen by a caller is one of the classes below. Each carries an
``ErrorKind`` tag so callers can branch on ``err.kind`` without relying on
class identity.
"""
from enum import Enum
from typing import Any, Optional

import httpx


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    PAYMENT = "payment"
    NOT_FOUND = "not_found"
    HTTP = "http"
    STREAMING = "streaming"
    CONNECTION_LOST = "connection_lost"
    DECODE = "decode"
    CLIENT_CLOSED = "client_closed"
    SESSION_CLOSED = "session_closed"


class FishAudioError(Exception):
    """Base class for every error raised by the client."""

    kind: ErrorKind = ErrorKind.HTTP

    def __init__(self, detail: str, status: Optional[int] = None) -> None:
        super().__init__(f"{status}: {detail}" if status is not None else detail)
        self.detail = detail
        self.status = status


class StatusError(FishAudioError):
    """Base for errors carrying an HTTP status."""

    def __init__(self, status: int, detail: str) -> None:
        super().__init__(detail, status)


class HttpCodeError(StatusError):
    """Non-2xx response without a more specific classification."""

    kind = ErrorKind.HTTP


class AuthenticationError(StatusError):
    kind = ErrorKind.AUTHENTICATION


class PaymentRequiredError(StatusError):
    kind = ErrorKind.PAYMENT


class NotFoundError(StatusError):
    kind = ErrorKind.NOT_FOUND


class WebSocketError(FishAudioError):
    """The peer reported an error in the middle of a streaming session."""

    kind = ErrorKind.STREAMING


class ConnectionLostError(FishAudioError):
    """The transport was severed without a protocol-level error."""

    kind = ErrorKind.CONNECTION_LOST


class DecodeError(FishAudioError):
    kind = ErrorKind.DECODE


class ClientClosedError(FishAudioError):
    kind = ErrorKind.CLIENT_CLOSED


class SessionClosedError(FishAudioError):
    kind = ErrorKind.SESSION_CLOSED


_STATUS_ERRORS = {
    401: AuthenticationError,
    402: PaymentRequiredError,
    404: NotFoundError,
}


def error_for_status(status: int, detail: str) -> StatusError:
    """Pick the narrowest error type for an HTTP status."""
    error_cls = _STATUS_ERRORS.get(status, HttpCodeError)
    return error_cls(status, detail or f"HTTP {status}")


def extract_detail(payload: Any, fallback: str) -> str:
    if isinstance(payload, str) and payload.strip():
        return payload
    if isinstance(payload, dict):
        detail = payload.get("detail") or payload.get("message")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return str(detail)
    return fallback


def classify_response(response: httpx.Response) -> StatusError:
    """Build the typed error for a failed response.

    The body must already be read. Detail comes from a structured
    ``detail``/``message`` field, then the raw body text, then the status line.
    """
    from .codecs import codec_for

    status_line = response.reason_phrase or f"HTTP {response.status_code}"
    payload: Any = None
    content = response.content
    if content:
        codec = codec_for(response.headers.get("Content-Type"))
        if codec is not None:
            try:
                payload = codec.decode(content)
            except DecodeError:
                payload = None
        if payload is None:
            payload = content.decode("utf-8", errors="replace")
    return error_for_status(response.status_code, extract_detail(payload, status_line))
