"""Error types raised by the ws4sqlite client."""

from __future__ import annotations

from typing import Optional

import httpx


class ErrorCode:
    """Error codes attached to every ws4sqlite client error."""
    UNKNOWN = "UNKNOWN"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    TRANSPORT = "TRANSPORT"
    REMOTE = "REMOTE"
    DECODE = "DECODE"


class Ws4SqliteError(Exception):
    """Base exception class for all ws4sqlite client errors."""

    def __init__(self, message: str, code: str = ErrorCode.UNKNOWN):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigError(Ws4SqliteError, ValueError):
    """Error raised when a Client is misconfigured (URL or authentication)."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG)


class ValidationError(Ws4SqliteError, ValueError):
    """Error raised by RequestBuilder.build() when the request is malformed."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION)


class TransportError(Ws4SqliteError):
    """Error raised when the round trip itself fails.

    Covers connection failures, timeouts and payloads that cannot be
    serialized. The HTTP status is 0 when no response was received.
    """

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message, ErrorCode.TRANSPORT)
        self.status_code = status_code


class DecodeError(Ws4SqliteError):
    """Error raised when a 200 response does not match the expected envelope."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message, ErrorCode.DECODE)
        self.status_code = status_code


class WsError(Ws4SqliteError):
    """Processing error reported by the remote service.

    The service answers with a non-200 status and a body like
    ``{"qryIdx": 2, "error": "..."}``. ``query_index`` points at the
    transaction entry that failed, or is -1 when the body could not be
    parsed as a structured error (then ``message`` is the raw body text).
    """

    def __init__(self, message: str, query_index: int = -1, status_code: int = 0):
        super().__init__(message, ErrorCode.REMOTE)
        self.query_index = query_index
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"WsError(message={self.message!r}, query_index={self.query_index}, "
            f"status_code={self.status_code})"
        )


def wrap_transport_error(err: BaseException, status_code: Optional[int] = None) -> TransportError:
    """Turn an httpx (or serialization) failure into a TransportError.

    Args:
        err: The exception raised while talking to the remote
        status_code: HTTP status, when a response had already been received

    Returns:
        A TransportError carrying a readable message
    """
    if isinstance(err, TransportError):
        return err
    if isinstance(err, httpx.TimeoutException):
        message = f"request timed out: {err}"
    elif isinstance(err, httpx.RequestError):
        message = f"network error: {err}"
    elif isinstance(err, (TypeError, ValueError)):
        message = f"cannot serialize request: {err}"
    else:
        message = str(err) or type(err).__name__
    return TransportError(message, status_code or 0)


__all__ = [
    "ErrorCode",
    "Ws4SqliteError",
    "ConfigError",
    "ValidationError",
    "TransportError",
    "DecodeError",
    "WsError",
    "wrap_transport_error",
]
