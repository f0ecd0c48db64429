#!/usr/bin/env python3
"""Send one transaction to a ws4sqlite server and print each outcome.

Start a server first, e.g.::

    ws4sqlite --mem-db mydb:mydb.yaml
"""

from loguru import logger

from ws4sqlite_client import (
    ClientBuilder,
    Failure,
    Protocol,
    RequestBuilder,
    ResultSet,
    RowsUpdated,
    RowsUpdatedBatch,
    TransportError,
    WsError,
)


def main() -> None:
    logger.enable("ws4sqlite_client")

    client = (
        ClientBuilder()
        .with_url_components(Protocol.HTTP, "localhost", 12321, "mydb")
        .with_inline_auth("myUser1", "myHotPassword")
        .build()
    )

    request = (
        RequestBuilder()
        .add_query("SELECT * FROM TEMP")
        .add_query("SELECT * FROM TEMP WHERE ID = :id ORDER BY ID ASC")
        .with_values({"id": 1})
        .add_statement("INSERT INTO TEMP (ID, VAL) VALUES (0, 'ZERO')")
        .add_statement("INSERT INTO TEMP (ID, VAL) VALUES (:id, :val)")
        .with_no_fail()
        .with_values({"id": 1, "val": "a"})
        .add_statement("INSERT INTO TEMP (ID, VAL) VALUES (:id, :val)")
        .with_values({"id": 2, "val": "b"})
        .with_values({"id": 3, "val": "c"})
        .build()
    )

    try:
        response = client.send(request)
    except WsError as err:
        print(f"✗ item {err.query_index} failed with HTTP {err.status_code}: {err.message}")
        return
    except TransportError as err:
        print(f"✗ cannot reach the server: {err.message}")
        return

    for idx, item in enumerate(response):
        if isinstance(item, ResultSet):
            print(f"[{idx}] {len(item)} row(s)")
            for row in item:
                print(f"      {row}")
        elif isinstance(item, RowsUpdated):
            print(f"[{idx}] {item.rows_updated} row(s) updated")
        elif isinstance(item, RowsUpdatedBatch):
            print(f"[{idx}] batch updated {list(item.rows_updated_batch)}")
        elif isinstance(item, Failure):
            print(f"[{idx}] failed: {item.error}")


if __name__ == "__main__":
    main()
