"""Tests for argument validation and result serialisation."""

import pytest

from cipherdb.errors import InvalidArguments, InvalidIdentifier, InvalidParameter
from cipherdb.models import QueryResult
from explorer.models import ToolResult, to_jsonable
from explorer.validators import (
    LIMIT_BOUNDS,
    bounded_int,
    optional_string,
    require_arguments,
    required_string,
    string_list,
    table_name,
)


def test_require_arguments_copies_mapping():
    original = {"a": 1}
    copied = require_arguments(original)

    assert copied == original
    assert copied is not original


def test_bounded_int_default_and_bounds():
    assert bounded_int({}, "limit", 10, LIMIT_BOUNDS) == 10
    assert bounded_int({"limit": 1}, "limit", 10, LIMIT_BOUNDS) == 1
    assert bounded_int({"limit": 1000}, "limit", 10, LIMIT_BOUNDS) == 1000


def test_bounded_int_reports_parameter_name():
    with pytest.raises(InvalidParameter) as exc_info:
        bounded_int({"limit": 1001}, "limit", 10, LIMIT_BOUNDS)

    assert exc_info.value.parameter == "limit"
    assert "between 1 and 1000" in exc_info.value.message


def test_required_string():
    assert required_string({"pattern": "%a"}, "pattern") == "%a"
    with pytest.raises(InvalidArguments):
        required_string({"pattern": "   "}, "pattern")


def test_optional_string():
    assert optional_string({}, "intent") is None
    assert optional_string({"intent": ""}, "intent") is None
    with pytest.raises(InvalidArguments):
        optional_string({"intent": 5}, "intent")


def test_string_list():
    assert string_list({"t": "a"}, "t") == ["a"]
    assert string_list({"t": ["a", "b"]}, "t") == ["a", "b"]
    assert string_list({}, "t") is None


@pytest.mark.parametrize("value", [[], [1], ["a", None], {"a": 1}])
def test_string_list_rejects_other_shapes(value):
    with pytest.raises(InvalidArguments):
        string_list({"t": value}, "t")


def test_string_list_required():
    with pytest.raises(InvalidArguments):
        string_list({}, "t", required=True)


def test_to_jsonable_expands_models_and_blobs():
    result = QueryResult(columns=["b"], rows=[{"b": b"\x00\xff"}])

    assert to_jsonable(result) == {
        "columns": ["b"],
        "rows": [{"b": {"$blob": "AP8=", "size": 2}}],
        "row_count": 1,
    }


def test_tool_result_envelopes():
    assert ToolResult.ok([1], "done").to_dict() == {
        "success": True,
        "data": [1],
        "message": "done",
    }
    assert ToolResult.fail("nope", "TableNotFound").to_dict() == {
        "success": False,
        "error": "nope",
        "error_kind": "TableNotFound",
    }


def test_table_name():
    assert table_name({"table_name": "orders"}) == "orders"
    assert table_name({}, required=False) is None
    with pytest.raises(InvalidIdentifier):
        table_name({})
    with pytest.raises(InvalidIdentifier):
        table_name({"table_name": "orders; DROP"}, required=False)
