"""Response model and decoding of ws4sqlite result envelopes.

Every entry of a 200 response is decoded into exactly one of four
ResponseItem variants:

- ``Failure``: the item failed, ``error`` holds the reason;
- ``RowsUpdated``: a statement without batch, ``rows_updated`` is the count;
- ``RowsUpdatedBatch``: a batched statement, one count per binding set;
- ``ResultSet``: a query, one row mapping per returned record. A successful
  entry with no outcome field is an empty ResultSet.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import DecodeError
from . import wire

Value = Union[None, bool, int, float, str, List["Value"], Dict[str, "Value"]]
Row = Dict[str, Value]


class ResponseItem:
    """Base class of the four outcome variants.

    Never instantiated itself: decoding only produces Failure, RowsUpdated,
    RowsUpdatedBatch or ResultSet, and each of them defines ``_key``.
    """

    __slots__ = ()

    success: bool = True

    @property
    def error(self) -> Optional[str]:
        return None

    @property
    def rows_updated(self) -> Optional[int]:
        return None

    @property
    def rows_updated_batch(self) -> Optional[Tuple[int, ...]]:
        return None

    @property
    def result_set(self) -> Optional[Tuple[Row, ...]]:
        return None

    def _key(self) -> Any:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self._key())))


class Failure(ResponseItem):
    __slots__ = ("_error",)

    success = False

    def __init__(self, error: str):
        self._error = error

    @property
    def error(self) -> str:
        return self._error

    def _key(self) -> Any:
        return self._error

    def __repr__(self) -> str:
        return f"Failure(error={self._error!r})"


class RowsUpdated(ResponseItem):
    __slots__ = ("_count",)

    def __init__(self, count: int):
        self._count = count

    @property
    def rows_updated(self) -> int:
        return self._count

    def _key(self) -> Any:
        return self._count

    def __repr__(self) -> str:
        return f"RowsUpdated({self._count})"


class RowsUpdatedBatch(ResponseItem):
    __slots__ = ("_counts",)

    def __init__(self, counts: Sequence[int]):
        self._counts: Tuple[int, ...] = tuple(counts)

    @property
    def rows_updated_batch(self) -> Tuple[int, ...]:
        return self._counts

    def _key(self) -> Any:
        return self._counts

    def __repr__(self) -> str:
        return f"RowsUpdatedBatch({list(self._counts)!r})"


class ResultSet(ResponseItem):
    __slots__ = ("_rows",)

    def __init__(self, rows: Sequence[Row]):
        self._rows: Tuple[Row, ...] = tuple(rows)

    @property
    def result_set(self) -> Tuple[Row, ...]:
        return self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def _key(self) -> Any:
        return self._rows

    def __repr__(self) -> str:
        return f"ResultSet(rows={len(self._rows)})"


class Response:
    """Ordered results of a transaction, one per request item."""

    __slots__ = ("_results", "_status_code")

    def __init__(self, results: Sequence[ResponseItem], status_code: int = 200):
        self._results: Tuple[ResponseItem, ...] = tuple(results)
        self._status_code = status_code

    @property
    def results(self) -> Tuple[ResponseItem, ...]:
        return self._results

    @property
    def status_code(self) -> int:
        return self._status_code

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ResponseItem]:
        return iter(self._results)

    def __getitem__(self, index: int) -> ResponseItem:
        return self._results[index]

    def __repr__(self) -> str:
        return f"Response(results={len(self._results)}, status_code={self._status_code})"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _decode_value(raw: Any, ctx: str) -> Value:
    if raw is None or isinstance(raw, (bool, str)):
        return raw
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            raise DecodeError(f"{ctx} is not a finite number")
        return raw
    if isinstance(raw, list):
        return [_decode_value(entry, f"{ctx}[{idx}]") for idx, entry in enumerate(raw)]
    if isinstance(raw, dict):
        return _decode_mapping(raw, ctx)
    raise DecodeError(f"{ctx} has unsupported type {type(raw).__name__}")


def _decode_mapping(raw: Mapping[Any, Any], ctx: str) -> Dict[str, Value]:
    decoded: Dict[str, Value] = {}
    for key, cell in raw.items():
        if not isinstance(key, str):
            raise DecodeError(f"{ctx} has a non-string column name")
        decoded[key] = _decode_value(cell, f"{ctx}[{key!r}]")
    return decoded


def _decode_row(raw: Any, ctx: str) -> Row:
    if not isinstance(raw, dict):
        raise DecodeError(f"{ctx} must be an object")
    return _decode_mapping(raw, ctx)


def decode_item(raw: Any, index: int = 0) -> ResponseItem:
    """Decode one entry of the ``results`` list."""
    ctx = f"results[{index}]"
    if not isinstance(raw, dict):
        raise DecodeError(f"{ctx} must be an object")
    success = raw.get("success")
    if not isinstance(success, bool):
        raise DecodeError(f"{ctx}.success must be a boolean")

    if not success:
        error = raw.get("error")
        if error is None:
            error = ""
        if not isinstance(error, str):
            raise DecodeError(f"{ctx}.error must be a string")
        return Failure(error)

    result_set = raw.get("resultSet")
    if result_set is not None:
        if not isinstance(result_set, list):
            raise DecodeError(f"{ctx}.resultSet must be a list")
        return ResultSet(
            [_decode_row(row, f"{ctx}.resultSet[{idx}]") for idx, row in enumerate(result_set)]
        )

    batch = raw.get("rowsUpdatedBatch")
    if batch is not None:
        if not isinstance(batch, list) or not all(_is_int(count) for count in batch):
            raise DecodeError(f"{ctx}.rowsUpdatedBatch must be a list of integers")
        return RowsUpdatedBatch(batch)

    rows_updated = raw.get("rowsUpdated")
    if rows_updated is not None:
        if not _is_int(rows_updated):
            raise DecodeError(f"{ctx}.rowsUpdated must be an integer")
        return RowsUpdated(rows_updated)

    # a query with no rows may come back with resultSet left out
    return ResultSet(())


def decode_response(body: Union[str, bytes, Mapping[str, Any]]) -> List[ResponseItem]:
    """Decode a 200 response body into ResponseItems.

    Args:
        body: Raw body text, or an already parsed JSON object

    Returns:
        One ResponseItem per transaction entry, in order

    Raises:
        DecodeError: If the body or any of its entries is malformed
    """
    if isinstance(body, (bytes, bytearray)):
        try:
            body = bytes(body).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"response body is not valid UTF-8: {exc}") from exc
    if isinstance(body, str):
        try:
            body = wire.loads(body)
        except ValueError as exc:
            raise DecodeError(f"response body is not valid JSON: {exc}") from exc
    if not isinstance(body, Mapping):
        raise DecodeError("response body must be a JSON object")
    results = body.get("results")
    if not isinstance(results, list):
        raise DecodeError("response body must contain a 'results' list")
    return [decode_item(entry, idx) for idx, entry in enumerate(results)]


def decode_error_body(text: str) -> Tuple[int, str]:
    """Parse a non-200 body as ``{"qryIdx": int, "error": str}``.

    Returns ``(-1, text)`` when the body is not such a document. A missing
    ``qryIdx`` (errors not tied to one item) also yields -1.
    """
    try:
        parsed = wire.loads(text)
    except ValueError:
        return -1, text
    if not isinstance(parsed, dict):
        return -1, text
    message = parsed.get("error")
    if not isinstance(message, str):
        return -1, text
    index = parsed.get("qryIdx", -1)
    if not _is_int(index):
        return -1, text
    return index, message


__all__ = [
    "Value",
    "Row",
    "ResponseItem",
    "Failure",
    "RowsUpdated",
    "RowsUpdatedBatch",
    "ResultSet",
    "Response",
    "decode_item",
    "decode_response",
    "decode_error_body",
]
