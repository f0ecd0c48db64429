"""Request model and fluent builder for ws4sqlite transactions."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from typing_extensions import Literal

from .errors import ValidationError
from .wire import CredentialsPayload, CryptoPayload, RequestItemPayload, RequestPayload

ItemKind = Literal["query", "statement"]

MIN_COMPRESSION_LEVEL = 1
MAX_COMPRESSION_LEVEL = 19


class Credentials:
    """User and password sent inline in the request body."""

    __slots__ = ("_user", "_password")

    def __init__(self, user: str, password: str):
        self._user = user
        self._password = password

    @property
    def user(self) -> str:
        return self._user

    @property
    def password(self) -> str:
        return self._password

    def to_payload(self) -> CredentialsPayload:
        return {"user": self._user, "password": self._password}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Credentials):
            return NotImplemented
        return self._user == other._user and self._password == other._password

    def __hash__(self) -> int:
        return hash((self._user, self._password))

    def __repr__(self) -> str:
        return f"Credentials(user={self._user!r}, password='***')"


class Crypto:
    """Column encryption (encoder) or decryption (decoder) settings."""

    __slots__ = ("_password", "_fields", "_compression_level")

    def __init__(
        self,
        password: str,
        fields: Sequence[str],
        compression_level: Optional[int] = None,
    ):
        self._password = password
        self._fields: Tuple[str, ...] = tuple(fields)
        self._compression_level = compression_level

    @property
    def password(self) -> str:
        return self._password

    @property
    def fields(self) -> Tuple[str, ...]:
        return self._fields

    @property
    def compression_level(self) -> Optional[int]:
        return self._compression_level

    def to_payload(self) -> CryptoPayload:
        payload: CryptoPayload = {"password": self._password, "fields": list(self._fields)}
        if self._compression_level is not None:
            payload["compressionLevel"] = self._compression_level
        return payload

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Crypto):
            return NotImplemented
        return (
            self._password == other._password
            and self._fields == other._fields
            and self._compression_level == other._compression_level
        )

    def __hash__(self) -> int:
        return hash((self._password, self._fields, self._compression_level))

    def __repr__(self) -> str:
        return (
            f"Crypto(fields={list(self._fields)!r}, "
            f"compression_level={self._compression_level!r})"
        )


class RequestItem:
    """One query or statement of a transaction. Built by RequestBuilder."""

    __slots__ = ("_kind", "_text", "_no_fail", "_values", "_values_batch", "_encoder", "_decoder")

    def __init__(
        self,
        kind: ItemKind,
        text: str,
        *,
        no_fail: bool = False,
        values: Optional[Mapping[str, Any]] = None,
        values_batch: Optional[Sequence[Mapping[str, Any]]] = None,
        encoder: Optional[Crypto] = None,
        decoder: Optional[Crypto] = None,
    ):
        if kind not in ("query", "statement"):
            raise ValueError("kind must be 'query' or 'statement'")
        if values is not None and values_batch is not None:
            raise ValueError("values and values_batch are mutually exclusive")
        self._kind = kind
        self._text = text
        self._no_fail = bool(no_fail)
        self._values = MappingProxyType(dict(values)) if values is not None else None
        self._values_batch = (
            tuple(MappingProxyType(dict(entry)) for entry in values_batch)
            if values_batch is not None
            else None
        )
        self._encoder = encoder
        self._decoder = decoder

    @property
    def kind(self) -> ItemKind:
        return self._kind

    @property
    def is_query(self) -> bool:
        return self._kind == "query"

    @property
    def is_statement(self) -> bool:
        return self._kind == "statement"

    @property
    def text(self) -> str:
        return self._text

    @property
    def no_fail(self) -> bool:
        return self._no_fail

    @property
    def values(self) -> Optional[Mapping[str, Any]]:
        return self._values

    @property
    def values_batch(self) -> Optional[Tuple[Mapping[str, Any], ...]]:
        return self._values_batch

    @property
    def encoder(self) -> Optional[Crypto]:
        return self._encoder

    @property
    def decoder(self) -> Optional[Crypto]:
        return self._decoder

    def to_payload(self) -> RequestItemPayload:
        payload: RequestItemPayload = {}
        if self._kind == "query":
            payload["query"] = self._text
        else:
            payload["statement"] = self._text
        if self._no_fail:
            payload["noFail"] = True
        if self._values is not None:
            payload["values"] = dict(self._values)
        if self._values_batch is not None:
            payload["valuesBatch"] = [dict(entry) for entry in self._values_batch]
        if self._encoder is not None:
            payload["encoder"] = self._encoder.to_payload()
        if self._decoder is not None:
            payload["decoder"] = self._decoder.to_payload()
        return payload

    def __repr__(self) -> str:
        return f"RequestItem(kind={self._kind!r}, text={self._text!r})"


class Request:
    """Immutable, ordered list of RequestItems sent as one transaction.

    Response item ``i`` always refers to request item ``i``. A Request can be
    sent any number of times, through any Client; credentials are added to
    the outgoing payload by the Client and never stored here.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Sequence[RequestItem]):
        if not items:
            raise ValueError("a request needs at least one item")
        self._items: Tuple[RequestItem, ...] = tuple(items)

    @property
    def items(self) -> Tuple[RequestItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[RequestItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> RequestItem:
        return self._items[index]

    def to_payload(self, credentials: Optional[Credentials] = None) -> RequestPayload:
        """Build a fresh wire document for this request."""
        transaction = [item.to_payload() for item in self._items]
        if credentials is not None:
            return {"credentials": credentials.to_payload(), "transaction": transaction}
        return {"transaction": transaction}

    def __repr__(self) -> str:
        return f"Request(items={len(self._items)})"


class RequestBuilder:
    """Fluent builder for a Request.

    Every call configures the item opened by the last add_query() or
    add_statement(). Validation failures do not raise immediately: the first
    one is kept, every following call is ignored, and build() raises it. This
    keeps long call chains linear.

    Examples:
        >>> request = (
        ...     RequestBuilder()
        ...     .add_query("SELECT * FROM TEMP WHERE ID = :id")
        ...     .with_values({"id": 1})
        ...     .add_statement("INSERT INTO TEMP (ID, VAL) VALUES (:id, :val)")
        ...     .with_values({"id": 2, "val": "b"})
        ...     .with_values({"id": 3, "val": "c"})
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._items: List[RequestItem] = []
        self._open: Optional[Dict[str, Any]] = None
        self._error: Optional[ValidationError] = None
        self._sealed = False

    @property
    def error(self) -> Optional[ValidationError]:
        """The first validation failure, if any."""
        return self._error

    def add_query(self, query: str) -> "RequestBuilder":
        return self._add("query", query)

    def add_statement(self, statement: str) -> "RequestBuilder":
        return self._add("statement", statement)

    def with_no_fail(self) -> "RequestBuilder":
        """Don't abort the whole transaction when this item fails."""
        item = self._current()
        if item is None:
            return self
        item["no_fail"] = True
        return self

    def with_values(self, values: Optional[Mapping[str, Any]]) -> "RequestBuilder":
        """Bind named parameters; a second call turns the item into a batch."""
        if self._error is not None:
            return self
        if values is None:
            return self._fail("values cannot be None")
        if not isinstance(values, Mapping):
            return self._fail("values must be a mapping of parameter name -> value")
        item = self._current()
        if item is None:
            return self
        if item["kind"] == "query" and (item["values"] is not None or item["values_batch"] is not None):
            return self._fail("cannot specify a batch for a query")
        entry = dict(values)
        if item["values_batch"] is not None:
            item["values_batch"].append(entry)
        elif item["values"] is not None:
            item["values_batch"] = [item["values"], entry]
            item["values"] = None
        else:
            item["values"] = entry
        return self

    def with_encoder_and_compression(
        self, password: str, compression_level: int, *fields: str
    ) -> "RequestBuilder":
        """Encrypt ``fields`` with ``password``, compressing first. Statements only."""
        if self._error is not None:
            return self
        if (
            isinstance(compression_level, bool)
            or not isinstance(compression_level, int)
            or not MIN_COMPRESSION_LEVEL <= compression_level <= MAX_COMPRESSION_LEVEL
        ):
            return self._fail(
                f"compressionLevel must be between {MIN_COMPRESSION_LEVEL} and {MAX_COMPRESSION_LEVEL}"
            )
        return self._set_encoder(Crypto(password, fields, compression_level), fields)

    def with_encoder(self, password: str, *fields: str) -> "RequestBuilder":
        """Encrypt ``fields`` with ``password``. Statements only."""
        if self._error is not None:
            return self
        return self._set_encoder(Crypto(password, fields), fields)

    def with_decoder(self, password: str, *fields: str) -> "RequestBuilder":
        """Decrypt ``fields`` of the result set with ``password``. Queries only."""
        if self._error is not None:
            return self
        if not self._check_fields(fields):
            return self
        item = self._current()
        if item is None:
            return self
        if item["kind"] == "statement":
            return self._fail("cannot specify a decoder for a statement")
        item["decoder"] = Crypto(password, fields)
        return self

    def build(self) -> Request:
        """Return the Request, or raise the first ValidationError met."""
        if self._error is not None:
            raise self._error
        if self._sealed:
            self._fail("builder already built")
            raise self._error
        if self._open is None:
            self._fail("there are no requests")
            raise self._error
        self._flush()
        self._sealed = True
        return Request(self._items)

    def _add(self, kind: ItemKind, text: str) -> "RequestBuilder":
        if self._error is not None:
            return self
        if self._sealed:
            return self._fail("builder already built")
        if not isinstance(text, str) or not text.strip():
            return self._fail(f"{kind} text must be a non-empty string")
        self._flush()
        self._open = {
            "kind": kind,
            "text": text,
            "no_fail": False,
            "values": None,
            "values_batch": None,
            "encoder": None,
            "decoder": None,
        }
        return self

    def _set_encoder(self, crypto: Crypto, fields: Sequence[str]) -> "RequestBuilder":
        if not self._check_fields(fields):
            return self
        item = self._current()
        if item is None:
            return self
        if item["kind"] == "query":
            return self._fail("cannot specify an encoder for a query")
        item["encoder"] = crypto
        return self

    def _check_fields(self, fields: Sequence[str]) -> bool:
        if not fields:
            self._fail("cannot specify an empty fields list")
            return False
        for field in fields:
            if not isinstance(field, str) or not field:
                self._fail("fields must be non-empty strings")
                return False
        return True

    def _current(self) -> Optional[Dict[str, Any]]:
        if self._error is not None:
            return None
        if self._sealed:
            self._fail("builder already built")
            return None
        if self._open is None:
            self._fail("no query or statement to configure")
            return None
        return self._open

    def _flush(self) -> None:
        if self._open is None:
            return
        draft = self._open
        self._items.append(
            RequestItem(
                draft["kind"],
                draft["text"],
                no_fail=draft["no_fail"],
                values=draft["values"],
                values_batch=draft["values_batch"],
                encoder=draft["encoder"],
                decoder=draft["decoder"],
            )
        )
        self._open = None

    def _fail(self, message: str) -> "RequestBuilder":
        if self._error is None:
            self._error = ValidationError(message)
        return self


__all__ = [
    "Credentials",
    "Crypto",
    "RequestItem",
    "Request",
    "RequestBuilder",
    "MIN_COMPRESSION_LEVEL",
    "MAX_COMPRESSION_LEVEL",
]
