"""Client for a ws4sqlite server.

A Client is configured once through ClientBuilder (URL, authentication,
transport options) and then sends any number of Requests. Each send is a
single HTTP POST; there is no retry and no state kept between calls, so a
Client can be shared freely between threads and tasks.

Examples:
    >>> client = (
    ...     ClientBuilder()
    ...     .with_url_components(Protocol.HTTP, "localhost", 12321, "mydb")
    ...     .with_inline_auth("myUser1", "myHotPassword")
    ...     .build()
    ... )
    >>> response = client.send(request)
    >>> response[0].result_set
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple

import httpx
from loguru import logger

from .errors import ConfigError, DecodeError, WsError, wrap_transport_error
from .request import Credentials, Request
from .response import Response, decode_error_body, decode_response
from . import wire

DEFAULT_TIMEOUT = 30.0

_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class AuthMode:
    """Authentication modes understood by the remote."""
    HTTP = "HTTP"
    INLINE = "INLINE"
    NONE = "NONE"


class Protocol:
    """URL schemes for with_url_components()."""
    HTTP = "http"
    HTTPS = "https"


_AUTH_MODES = (AuthMode.HTTP, AuthMode.INLINE, AuthMode.NONE)


class ClientBuilder:
    """Builder for Client instances.

    Configuration problems are reported by build() as ConfigError, never at
    send time.
    """

    def __init__(self) -> None:
        self._url: Optional[str] = None
        self._auth_mode: str = AuthMode.NONE
        self._user = ""
        self._password = ""
        self._timeout: Any = DEFAULT_TIMEOUT
        self._http_client: Optional[httpx.Client] = None
        self._async_http_client: Optional[httpx.AsyncClient] = None

    def with_url(self, url: str) -> "ClientBuilder":
        """Set the full URL of the database, e.g. ``http://localhost:12321/mydb``."""
        self._url = url
        return self

    def with_url_components(
        self, protocol: str, host: str, port: int, database_id: str
    ) -> "ClientBuilder":
        self._url = f"{protocol}://{host}:{port}/{database_id}"
        return self

    def with_url_components_no_port(
        self, protocol: str, host: str, database_id: str
    ) -> "ClientBuilder":
        self._url = f"{protocol}://{host}/{database_id}"
        return self

    def with_inline_auth(self, user: str, password: str) -> "ClientBuilder":
        """Send credentials in the request body; the remote must be configured for it."""
        return self.with_auth(AuthMode.INLINE, user, password)

    def with_http_auth(self, user: str, password: str) -> "ClientBuilder":
        """Use HTTP Basic Authentication; the remote must be configured for it."""
        return self.with_auth(AuthMode.HTTP, user, password)

    def with_auth(self, mode: str, user: str = "", password: str = "") -> "ClientBuilder":
        self._auth_mode = mode
        self._user = user
        self._password = password
        return self

    def with_timeout(self, seconds: float) -> "ClientBuilder":
        """Timeout for each round trip, in seconds."""
        self._timeout = seconds
        return self

    def with_http_client(self, client: httpx.Client) -> "ClientBuilder":
        """Send through a caller-owned httpx.Client instead of a per-call one."""
        self._http_client = client
        return self

    def with_async_http_client(self, client: httpx.AsyncClient) -> "ClientBuilder":
        """Same as with_http_client(), for send_async()."""
        self._async_http_client = client
        return self

    def build(self) -> "Client":
        if not self._url:
            raise ConfigError("no url specified")
        if self._auth_mode not in _AUTH_MODES:
            raise ConfigError("invalid auth mode")
        if self._auth_mode != AuthMode.NONE and (not self._user or not self._password):
            raise ConfigError("no user or password specified")
        if (
            isinstance(self._timeout, bool)
            or not isinstance(self._timeout, (int, float))
            or self._timeout <= 0
        ):
            raise ConfigError("timeout must be a positive number of seconds")
        if self._http_client is not None and not isinstance(self._http_client, httpx.Client):
            raise ConfigError("http client must be an httpx.Client")
        if self._async_http_client is not None and not isinstance(
            self._async_http_client, httpx.AsyncClient
        ):
            raise ConfigError("async http client must be an httpx.AsyncClient")
        return Client(
            self._url,
            self._auth_mode,
            Credentials(self._user, self._password) if self._auth_mode != AuthMode.NONE else None,
            float(self._timeout),
            self._http_client,
            self._async_http_client,
        )


class Client:
    """Immutable connection settings for one ws4sqlite database."""

    def __init__(
        self,
        url: str,
        auth_mode: str,
        credentials: Optional[Credentials],
        timeout: float,
        http_client: Optional[httpx.Client] = None,
        async_http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Internal constructor - use ClientBuilder instead"""
        self._url = url
        self._auth_mode = auth_mode
        self._credentials = credentials
        self._timeout = timeout
        self._http_client = http_client
        self._async_http_client = async_http_client

    @property
    def url(self) -> str:
        return self._url

    @property
    def auth_mode(self) -> str:
        return self._auth_mode

    @property
    def timeout(self) -> float:
        return self._timeout

    def send(self, request: Request, *, timeout: Optional[float] = None) -> Response:
        """
        Send a Request and wait for its Response

        Args:
            request: The transaction to execute
            timeout: Overrides the client timeout for this call

        Returns:
            Response with one result per request item

        Raises:
            WsError: If the remote answered with a non-200 status
            TransportError: If the request could not be sent or answered
            DecodeError: If a 200 body does not have the expected shape
        """
        content, headers, auth = self._prepare(request)
        effective = timeout if timeout is not None else self._timeout
        started = time.perf_counter()
        try:
            if self._http_client is not None:
                resp = self._http_client.post(
                    self._url, content=content, headers=headers, auth=auth, timeout=effective
                )
            else:
                with httpx.Client(timeout=effective) as http:
                    resp = http.post(self._url, content=content, headers=headers, auth=auth)
        except _TRANSPORT_ERRORS as exc:
            logger.debug(f"ws4sqlite POST {self._url} failed: {exc}")
            raise wrap_transport_error(exc) from exc
        return self._handle(resp, started)

    async def send_async(self, request: Request, *, timeout: Optional[float] = None) -> Response:
        """
        Async variant of send()

        Cancelling the awaiting task aborts the in-flight call; the
        cancellation propagates and no Response is produced.
        """
        content, headers, auth = self._prepare(request)
        effective = timeout if timeout is not None else self._timeout
        started = time.perf_counter()
        try:
            if self._async_http_client is not None:
                resp = await self._async_http_client.post(
                    self._url, content=content, headers=headers, auth=auth, timeout=effective
                )
            else:
                async with httpx.AsyncClient(timeout=effective) as http:
                    resp = await http.post(self._url, content=content, headers=headers, auth=auth)
        except _TRANSPORT_ERRORS as exc:
            logger.debug(f"ws4sqlite POST {self._url} failed: {exc}")
            raise wrap_transport_error(exc) from exc
        return self._handle(resp, started)

    def _prepare(
        self, request: Request
    ) -> Tuple[bytes, Dict[str, str], Optional[httpx.BasicAuth]]:
        if not isinstance(request, Request):
            raise TypeError("send() requires a Request built with RequestBuilder")
        inline = self._credentials if self._auth_mode == AuthMode.INLINE else None
        payload = request.to_payload(inline)
        try:
            content = wire.dumps(payload)
        except (TypeError, ValueError) as exc:
            raise wrap_transport_error(exc) from exc
        auth: Optional[httpx.BasicAuth] = None
        if self._auth_mode == AuthMode.HTTP and self._credentials is not None:
            auth = httpx.BasicAuth(self._credentials.user, self._credentials.password)
        logger.debug(
            f"ws4sqlite POST {self._url}: {len(request)} item(s), auth={self._auth_mode}"
        )
        return content, {"Content-Type": "application/json"}, auth

    def _handle(self, resp: httpx.Response, started: float) -> Response:
        status = resp.status_code
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"ws4sqlite POST {self._url} -> {status} in {elapsed_ms:.1f}ms")
        text = resp.text

        if status != 200:
            index, message = decode_error_body(text)
            logger.debug(f"ws4sqlite remote error {status} at item {index}: {message}")
            raise WsError(message, index, status)

        try:
            results = decode_response(text)
        except DecodeError as exc:
            raise DecodeError(exc.message, status) from exc
        return Response(results, status)

    def __repr__(self) -> str:
        return f"Client(url={self._url!r}, auth_mode={self._auth_mode!r})"


def open_client(
    url: str,
    *,
    inline_auth: Optional[Tuple[str, str]] = None,
    http_auth: Optional[Tuple[str, str]] = None,
    timeout: Optional[float] = None,
) -> Client:
    """Convenience helper mirroring ClientBuilder in one call."""
    if inline_auth is not None and http_auth is not None:
        raise ConfigError("inline_auth and http_auth are mutually exclusive")
    builder = ClientBuilder().with_url(url)
    if inline_auth is not None:
        builder.with_inline_auth(*inline_auth)
    elif http_auth is not None:
        builder.with_http_auth(*http_auth)
    if timeout is not None:
        builder.with_timeout(timeout)
    return builder.build()


__all__ = ["AuthMode", "Protocol", "ClientBuilder", "Client", "open_client", "DEFAULT_TIMEOUT"]
