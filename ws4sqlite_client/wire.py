"""JSON documents exchanged with a ws4sqlite server."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from typing_extensions import NotRequired, TypedDict

Scalar = Any


class CredentialsPayload(TypedDict):
    user: str
    password: str


class CryptoPayload(TypedDict):
    password: str
    fields: List[str]
    compressionLevel: NotRequired[int]


class RequestItemPayload(TypedDict, total=False):
    """One transaction entry; exactly one of ``query``/``statement`` is set."""

    query: str
    statement: str
    noFail: bool
    values: Dict[str, Scalar]
    valuesBatch: List[Dict[str, Scalar]]
    encoder: CryptoPayload
    decoder: CryptoPayload


class RequestPayload(TypedDict):
    credentials: NotRequired[CredentialsPayload]
    transaction: List[RequestItemPayload]


class ResponseItemPayload(TypedDict):
    success: bool
    error: NotRequired[str]
    rowsUpdated: NotRequired[int]
    rowsUpdatedBatch: NotRequired[List[int]]
    resultSet: NotRequired[List[Dict[str, Any]]]


class ResponsePayload(TypedDict):
    results: List[ResponseItemPayload]


class ErrorPayload(TypedDict):
    qryIdx: int
    error: str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def dumps(payload: Mapping[str, Any]) -> bytes:
    """Serialize an outgoing document; raises TypeError/ValueError when it can't."""
    return json.dumps(payload, allow_nan=False, separators=(",", ":")).encode("utf-8")


def loads(text: str) -> Any:
    """Parse an incoming document, refusing NaN and Infinity."""
    return json.loads(text, parse_constant=_reject_constant)


__all__ = [
    "CredentialsPayload",
    "CryptoPayload",
    "RequestItemPayload",
    "RequestPayload",
    "ResponseItemPayload",
    "ResponsePayload",
    "ErrorPayload",
    "dumps",
    "loads",
]
