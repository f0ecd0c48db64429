"""Pytest fixtures: an in-memory stand-in for a ws4sqlite server."""

import base64
import json
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest

from ws4sqlite_client import ClientBuilder, Protocol, RequestBuilder

USER = "myUser1"
PASSWORD = "myHotPassword"

_SELECT_ALL = "SELECT * FROM TEMP"
_SELECT_BY_ID = "SELECT * FROM TEMP WHERE ID = :id ORDER BY ID ASC"
_INSERT_ZERO = "INSERT INTO TEMP (ID, VAL) VALUES (0, 'ZERO')"
_INSERT_PARAMS = "INSERT INTO TEMP (ID, VAL) VALUES (:id, :val)"


class _ItemFailure(Exception):
    pass


class FakeWs4Sqlite:
    """Executes the handful of statements used by the tests against a dict.

    Mirrors the server contract: items run in order inside one transaction;
    a failing item aborts everything with a non-200 ``{"qryIdx", "error"}``
    body unless it was flagged ``noFail``, in which case it reports
    ``success: false`` in its own slot.
    """

    def __init__(self, auth_mode: str = "NONE") -> None:
        self.auth_mode = auth_mode
        self.table: Dict[int, str] = {1: "ONE", 4: "FOUR"}
        self.requests: List[httpx.Request] = []

    @property
    def last_body(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method != "POST":
            return httpx.Response(405, text="method not allowed")
        body = json.loads(request.content)
        if not self._authorized(request, body):
            return httpx.Response(401, json={"qryIdx": -1, "error": "unauthorized"})

        work = dict(self.table)
        results = []
        for idx, item in enumerate(body["transaction"]):
            try:
                results.append(self._run(work, item))
            except _ItemFailure as exc:
                if item.get("noFail"):
                    results.append({"success": False, "error": str(exc)})
                    continue
                return httpx.Response(500, json={"qryIdx": idx, "error": str(exc)})
        self.table = work
        return httpx.Response(200, json={"results": results})

    def _authorized(self, request: httpx.Request, body: Dict[str, Any]) -> bool:
        if self.auth_mode == "INLINE":
            return body.get("credentials") == {"user": USER, "password": PASSWORD}
        if self.auth_mode == "HTTP":
            token = base64.b64encode(f"{USER}:{PASSWORD}".encode()).decode()
            return request.headers.get("Authorization") == f"Basic {token}"
        return True

    def _run(self, table: Dict[int, str], item: Dict[str, Any]) -> Dict[str, Any]:
        if "query" in item:
            sql = item["query"]
            if sql == _SELECT_ALL:
                rows = [{"ID": key, "VAL": table[key]} for key in sorted(table)]
            elif sql == _SELECT_BY_ID:
                key = item["values"]["id"]
                rows = [{"ID": key, "VAL": table[key]}] if key in table else []
            else:
                raise _ItemFailure(self._syntax_error(sql))
            return {"success": True, "resultSet": rows}

        sql = item["statement"]
        if sql == _INSERT_ZERO:
            self._insert(table, 0, "ZERO")
            return {"success": True, "rowsUpdated": 1}
        if sql == _INSERT_PARAMS:
            if "valuesBatch" in item:
                counts = []
                for values in item["valuesBatch"]:
                    self._insert(table, values["id"], values["val"])
                    counts.append(1)
                return {"success": True, "rowsUpdatedBatch": counts}
            values = item.get("values") or {}
            self._insert(table, values.get("id"), values.get("val"))
            return {"success": True, "rowsUpdated": 1}
        raise _ItemFailure(self._syntax_error(sql))

    @staticmethod
    def _insert(table: Dict[int, str], key: Optional[int], value: Optional[str]) -> None:
        if key in table:
            raise _ItemFailure("UNIQUE constraint failed: TEMP.ID")
        table[key] = value

    @staticmethod
    def _syntax_error(sql: str) -> str:
        word = re.split(r"\s+", sql.strip(), maxsplit=1)[0]
        return f'near "{word}": syntax error'


@pytest.fixture
def server() -> FakeWs4Sqlite:
    return FakeWs4Sqlite()


@pytest.fixture
def client_for():
    """Build a Client for a fake server, with the given auth mode."""

    opened: List[httpx.Client] = []

    def factory(server: FakeWs4Sqlite, auth: str = "NONE"):
        server.auth_mode = auth
        http = httpx.Client(transport=httpx.MockTransport(server.handle))
        opened.append(http)
        builder = (
            ClientBuilder()
            .with_url_components(Protocol.HTTP, "localhost", 12321, "mydb")
            .with_http_client(http)
        )
        if auth == "INLINE":
            builder.with_inline_auth(USER, PASSWORD)
        elif auth == "HTTP":
            builder.with_http_auth(USER, PASSWORD)
        return builder.build()

    yield factory
    for http in opened:
        http.close()


@pytest.fixture
def scenario_request():
    """The five-item transaction of the end-to-end scenario."""
    return (
        RequestBuilder()
        .add_query(_SELECT_ALL)
        .add_query(_SELECT_BY_ID)
        .with_values({"id": 1})
        .add_statement(_INSERT_ZERO)
        .add_statement(_INSERT_PARAMS)
        .with_no_fail()
        .with_values({"id": 1, "val": "a"})
        .add_statement(_INSERT_PARAMS)
        .with_values({"id": 2, "val": "b"})
        .with_values({"id": 3, "val": "c"})
        .build()
    )
