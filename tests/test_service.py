"""Tests for operation dispatch, argument checks and result envelopes."""

import asyncio
import base64

import pytest

from cipherdb.StatisticsAggregator import StatisticsAggregator
from explorer.config import ExplorerConfig
from explorer.ExplorerService import ExplorerService
from explorer.tools import TOOL_NAMES
from conftest import TEST_PASSWORD


def test_every_catalog_entry_has_a_handler(service):
    assert sorted(service.operations) == sorted(TOOL_NAMES)
    assert len(TOOL_NAMES) == 18


# ---------------------------------------------------------------------------
# Dispatch and validation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_operation(service):
    result = await service.call_tool("drop_everything", {})

    assert result.success is False
    assert result.error_kind == "UnknownOperation"
    assert "drop_everything" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [None, [], "orders", 3])
async def test_arguments_must_be_an_object(service, arguments):
    result = await service.call_tool("list_tables", arguments)

    assert result.error_kind == "InvalidArguments"


@pytest.mark.asyncio
async def test_missing_database_path():
    service = ExplorerService(ExplorerConfig())

    result = await service.call_tool("list_tables", {})

    assert result.error_kind == "MissingDatabasePath"
    assert "SQLCIPHER_DATABASE_PATH" in result.error


@pytest.mark.asyncio
async def test_call_path_overrides_configured_default(sample_db, tmp_path):
    service = ExplorerService(ExplorerConfig(database_path=str(tmp_path / "elsewhere.db")))

    missing = await service.call_tool("list_tables", {})
    found = await service.call_tool("list_tables", {"database_path": sample_db})

    assert missing.error_kind == "FileNotFound"
    assert found.success is True


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 1001, -5, "10", True, 2.5])
async def test_limit_out_of_bounds(service, limit):
    result = await service.call_tool(
        "sample_table_data", {"table_name": "orders", "limit": limit}
    )

    assert result.error_kind == "InvalidParameter"


@pytest.mark.asyncio
async def test_integral_float_limit_is_accepted(service):
    result = await service.call_tool(
        "sample_table_data", {"table_name": "orders", "limit": 4.0}
    )

    assert result.success is True
    assert result.data["row_count"] == 4


@pytest.mark.asyncio
async def test_bad_parameter_is_reported_before_connecting():
    service = ExplorerService(ExplorerConfig())

    result = await service.call_tool(
        "get_table_statistics", {"table_name": "orders", "timeout_ms": 0}
    )

    assert result.error_kind == "InvalidParameter"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, arguments",
    [
        ("list_columns", {}),
        ("list_columns", {"table_name": "orders; --"}),
        ("get_table_info", {"table_name": "1abc"}),
        ("find_related_tables", {"table_name": None}),
        ("get_table_statistics", {"table_name": "a b"}),
        ("sample_table_data", {"table_name": 'x"y'}),
        ("get_column_statistics", {"table_name": "x-y", "column_name": "id"}),
        ("suggest_query", {"table_name": ""}),
        ("get_foreign_keys", {"table_name": "bad name"}),
        ("get_indexes", {"table_name": "bad name"}),
        ("get_table_schema", {"table_name": ["orders", "bad name"]}),
    ],
)
async def test_bad_table_name_is_reported_before_opening_the_file(
    tmp_path, operation, arguments
):
    service = ExplorerService(ExplorerConfig(database_path=str(tmp_path / "missing.db")))

    result = await service.call_tool(operation, arguments)

    assert result.error_kind == "InvalidIdentifier"


@pytest.mark.asyncio
async def test_unexpected_failure_is_internal_error(service, monkeypatch):
    async def explode(arguments):
        raise RuntimeError("kaboom")

    monkeypatch.setitem(service._handlers, "list_tables", explode)
    result = await service.call_tool("list_tables", {})

    assert result.success is False
    assert result.error_kind == "InternalError"
    assert "kaboom" in result.error


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_execute_query(service):
    result = await service.call_tool(
        "execute_query", {"query": "SELECT id, name FROM customers ORDER BY id LIMIT 2"}
    )

    assert result.success is True
    assert result.data["columns"] == ["id", "name"]
    assert result.data["row_count"] == 2
    assert result.message == "Query returned 2 row(s)"


@pytest.mark.asyncio
async def test_write_query_is_rejected(service):
    result = await service.call_tool("execute_query", {"query": "DELETE FROM customers"})

    assert result.error_kind == "WriteQueryRejected"


@pytest.mark.asyncio
async def test_blob_values_are_serialised(service):
    result = await service.call_tool(
        "execute_query",
        {"query": "SELECT thumbnail FROM products WHERE thumbnail IS NOT NULL ORDER BY id"},
    )

    thumbnail = result.to_dict()["data"]["rows"][0]["thumbnail"]
    raw = bytes([0x89, 0x50, 0x4E, 0x47, 0])
    assert thumbnail == {"$blob": base64.b64encode(raw).decode("ascii"), "size": 5}


@pytest.mark.asyncio
async def test_explain_query(service):
    result = await service.call_tool(
        "explain_query", {"query": "SELECT * FROM orders WHERE customer_id = 1"}
    )

    assert result.success is True
    assert result.data["plan"]
    assert any("idx_orders_customer" in step["detail"] for step in result.data["plan"])


@pytest.mark.asyncio
async def test_validate_query_syntax_valid(service):
    result = await service.call_tool("validate_query_syntax", {"query": "SELECT 1"})

    assert result.success is True
    assert result.data == {"valid": True}


@pytest.mark.asyncio
async def test_validate_query_syntax_unknown_table(service):
    result = await service.call_tool(
        "validate_query_syntax", {"query": "SELECT * FROM ghost"}
    )

    assert result.success is True
    assert result.data["valid"] is False
    assert result.data["error_kind"] == "QueryFailed"


@pytest.mark.asyncio
async def test_validate_query_syntax_classifies_without_a_database():
    service = ExplorerService(ExplorerConfig())

    result = await service.call_tool(
        "validate_query_syntax", {"query": "UPDATE orders SET total = 0"}
    )

    assert result.success is True
    assert result.data["valid"] is False
    assert result.data["error_kind"] == "WriteQueryRejected"


@pytest.mark.asyncio
async def test_suggest_query_join(service):
    result = await service.call_tool(
        "suggest_query", {"table_name": "orders", "intent": "join"}
    )

    assert result.success is True
    [template] = result.data["templates"]
    assert 'JOIN "customers" t2 ON t1."customer_id" = t2."id"' in template["query"]


@pytest.mark.asyncio
async def test_suggest_query_defaults_to_sample(service):
    result = await service.call_tool("suggest_query", {"table_name": "customers"})

    assert result.data["intent"] == "sample"
    assert result.data["templates"][0]["query"].endswith("LIMIT 10")


@pytest.mark.asyncio
async def test_suggest_query_unknown_intent(service):
    result = await service.call_tool(
        "suggest_query", {"table_name": "orders", "intent": "delete"}
    )

    assert result.error_kind == "InvalidParameter"


# ---------------------------------------------------------------------------
# Schema operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_tables_includes_row_counts(service):
    result = await service.call_tool("list_tables", {})

    counts = {t["name"]: t["row_count"] for t in result.data}
    assert counts["customers"] == 8
    assert counts["orders"] == 20
    assert result.message == "Found 5 table(s)"


@pytest.mark.asyncio
async def test_get_table_schema_single_name(service):
    result = await service.call_tool("get_table_schema", {"table_name": "line_items"})

    assert result.data["table_name"] == "line_items"
    assert len(result.data["foreign_keys"]) == 2
    assert result.data["indexes"][0]["columns"] == ["order_id", "product_id"]


@pytest.mark.asyncio
async def test_get_table_schema_name_list(service):
    result = await service.call_tool(
        "get_table_schema", {"table_name": ["products", "customers"]}
    )

    assert [s["table_name"] for s in result.data] == ["products", "customers"]


@pytest.mark.asyncio
async def test_get_table_schema_unknown_name_fails_whole_call(service):
    result = await service.call_tool(
        "get_table_schema", {"table_name": ["products", "ghost"]}
    )

    assert result.error_kind == "TableNotFound"


@pytest.mark.asyncio
async def test_get_database_info(service, sample_db):
    result = await service.call_tool("get_database_info", {})

    assert result.data["path"] == sample_db
    assert result.data["encoding"] == "UTF-8"


@pytest.mark.asyncio
async def test_search_requires_pattern(service):
    result = await service.call_tool("search_columns", {})

    assert result.error_kind == "InvalidArguments"


@pytest.mark.asyncio
async def test_find_related_tables_message(service):
    result = await service.call_tool("find_related_tables", {"table_name": "orders"})

    assert result.message == "orders references 1 table(s) and is referenced by 1"


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_column_statistics_accepts_single_name(service):
    result = await service.call_tool(
        "get_column_statistics", {"table_name": "orders", "column_name": "status"}
    )

    assert [s["column_name"] for s in result.data] == ["status"]


@pytest.mark.asyncio
async def test_get_column_statistics_unknown_column(service):
    result = await service.call_tool(
        "get_column_statistics",
        {"table_name": "orders", "column_name": ["status", "nope"]},
    )

    assert result.error_kind == "ColumnNotFound"
    assert "nope" in result.error


@pytest.mark.asyncio
async def test_table_statistics_timeout(service, monkeypatch):
    async def slow(self, table_name, max_sample_size=None):
        await asyncio.sleep(5)

    monkeypatch.setattr(StatisticsAggregator, "table_statistics", slow)
    result = await service.call_tool(
        "get_table_statistics", {"table_name": "orders", "timeout_ms": 20}
    )

    assert result.error_kind == "OperationTimeout"
    assert "20 ms" in result.error


# ---------------------------------------------------------------------------
# Encrypted databases and the secret
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_test_connection_on_encrypted_database(encrypted_db):
    service = ExplorerService(ExplorerConfig(database_path=encrypted_db, password=TEST_PASSWORD))

    result = await service.call_tool("test_connection", {})

    assert result.success is True
    assert result.data == {"connected": True, "encrypted": True, "database_path": encrypted_db}


@pytest.mark.asyncio
async def test_wrong_password(encrypted_db):
    service = ExplorerService(
        ExplorerConfig(database_path=encrypted_db, password="not-the-key")
    )

    result = await service.call_tool("list_tables", {})

    assert result.error_kind == "InvalidPasswordOrCorrupt"
    assert "not-the-key" not in result.error


@pytest.mark.asyncio
async def test_secret_is_scrubbed_from_error_messages(tmp_path):
    from generate_sample_db import build_database

    path = tmp_path / "keyed.db"
    build_database(path, key="hunter2")
    service = ExplorerService(ExplorerConfig(database_path=str(path), password="hunter2"))

    result = await service.call_tool("execute_query", {"query": "SELECT * FROM hunter2"})

    assert result.error_kind == "TableNotFound"
    assert "hunter2" not in result.error
    assert "***" in result.error
