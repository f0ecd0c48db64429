"""Python client for ws4sqlite, SQLite over HTTP.

Logging goes through loguru and is disabled for this package by default;
enable it with ``logger.enable("ws4sqlite_client")``.
"""

from loguru import logger

from .client import AuthMode, Client, ClientBuilder, Protocol, open_client
from .errors import (
    ErrorCode,
    Ws4SqliteError,
    ConfigError,
    ValidationError,
    TransportError,
    DecodeError,
    WsError,
    wrap_transport_error,
)
from .request import Credentials, Crypto, Request, RequestBuilder, RequestItem
from .response import (
    Failure,
    ResponseItem,
    Response,
    ResultSet,
    RowsUpdated,
    RowsUpdatedBatch,
    Value,
    decode_response,
)

__version__ = "0.11.0"

logger.disable(__name__)

__all__ = [
    "__version__",
    "Client",
    "ClientBuilder",
    "AuthMode",
    "Protocol",
    "open_client",
    "Request",
    "RequestBuilder",
    "RequestItem",
    "Credentials",
    "Crypto",
    "Response",
    "ResponseItem",
    "Failure",
    "RowsUpdated",
    "RowsUpdatedBatch",
    "ResultSet",
    "Value",
    "decode_response",
    # Error types
    "ErrorCode",
    "Ws4SqliteError",
    "ConfigError",
    "ValidationError",
    "TransportError",
    "DecodeError",
    "WsError",
    "wrap_transport_error",
]
