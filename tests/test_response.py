import json

import pytest

from ws4sqlite_client import (
    DecodeError,
    Failure,
    ResultSet,
    RowsUpdated,
    RowsUpdatedBatch,
    decode_response,
)
from ws4sqlite_client.response import decode_error_body


def _outcome_count(item) -> int:
    populated = [
        item.error is not None,
        item.rows_updated is not None,
        item.rows_updated_batch is not None,
        item.result_set is not None,
    ]
    return sum(populated)


def test_decode_each_variant() -> None:
    body = {
        "results": [
            {"success": True, "resultSet": [{"ID": 1, "VAL": "ONE"}, {"ID": 4, "VAL": "FOUR"}]},
            {"success": True, "rowsUpdated": 1},
            {"success": False, "error": "UNIQUE constraint failed: TEMP.ID"},
            {"success": True, "rowsUpdatedBatch": [1, 0, 2]},
        ]
    }
    items = decode_response(json.dumps(body))
    assert len(items) == 4
    assert all(_outcome_count(item) == 1 for item in items)

    assert isinstance(items[0], ResultSet)
    assert items[0].success is True
    assert len(items[0]) == 2
    assert items[0][1]["VAL"] == "FOUR"

    assert items[1] == RowsUpdated(1)
    assert items[1].rows_updated == 1

    assert isinstance(items[2], Failure)
    assert items[2].success is False
    assert items[2].error == "UNIQUE constraint failed: TEMP.ID"

    assert items[3] == RowsUpdatedBatch([1, 0, 2])
    assert items[3].rows_updated_batch == (1, 0, 2)


def test_dynamic_cell_values_and_column_order() -> None:
    body = (
        '{"results": [{"success": true, "resultSet": [{"Z": null, "A": true, "M": 1.5,'
        ' "N": [1, "two", {"k": false}], "O": {"x": 3}}]}]}'
    )
    (item,) = decode_response(body)
    row = item.result_set[0]
    assert list(row) == ["Z", "A", "M", "N", "O"]
    assert row["Z"] is None
    assert row["A"] is True
    assert row["M"] == 1.5
    assert row["N"] == [1, "two", {"k": False}]
    assert row["O"] == {"x": 3}


def test_empty_result_set_is_still_a_result_set() -> None:
    (item,) = decode_response({"results": [{"success": True, "resultSet": []}]})
    assert isinstance(item, ResultSet)
    assert len(item) == 0


def test_success_without_outcome_is_an_empty_result_set() -> None:
    first, second = decode_response('{"results": [{"success": true, "resultSet": [{"A": 1}]}, {"success": true}]}')
    assert first.result_set == ({"A": 1},)
    assert isinstance(second, ResultSet)
    assert second.success
    assert second.result_set == ()
    assert second.rows_updated is None


def test_variants_compare_by_type_and_value() -> None:
    assert RowsUpdated(1) == RowsUpdated(1)
    assert RowsUpdated(1) != RowsUpdatedBatch([1])
    assert ResultSet([]) != RowsUpdatedBatch([])
    assert hash(ResultSet([{"A": 1}])) == hash(ResultSet([{"A": 1}]))
    assert len({Failure("x"), Failure("x"), Failure("y")}) == 2


def test_failure_without_message() -> None:
    (item,) = decode_response(b'{"results": [{"success": false}]}')
    assert item == Failure("")


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        "[]",
        '{"result": []}',
        '{"results": {}}',
        '{"results": [1]}',
        '{"results": [{"rowsUpdated": 1}]}',
        '{"results": [{"success": true, "rowsUpdated": "1"}]}',
        '{"results": [{"success": true, "rowsUpdated": true}]}',
        '{"results": [{"success": true, "rowsUpdatedBatch": [1, "x"]}]}',
        '{"results": [{"success": true, "resultSet": [[1, 2]]}]}',
        '{"results": [{"success": true, "resultSet": [{"A": NaN}]}]}',
        '{"results": [{"success": false, "error": 3}]}',
    ],
)
def test_malformed_bodies_raise(body: str) -> None:
    with pytest.raises(DecodeError):
        decode_response(body)


def test_decode_error_body_structured() -> None:
    assert decode_error_body('{"qryIdx": 3, "error": "boom"}') == (3, "boom")
    assert decode_error_body('{"error": "global failure"}') == (-1, "global failure")


def test_decode_error_body_unstructured() -> None:
    assert decode_error_body("Internal Server Error") == (-1, "Internal Server Error")
    assert decode_error_body('{"qryIdx": "x", "error": "boom"}') == (
        -1,
        '{"qryIdx": "x", "error": "boom"}',
    )
    assert decode_error_body("") == (-1, "")
