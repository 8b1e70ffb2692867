"""Tests for catalog, column, foreign-key and index introspection."""

import os

import pytest
from sqlcipher3 import dbapi2 as sqlcipher

import cipherdb.SchemaInspector as inspector_module
from cipherdb.errors import InfoUnavailable, InvalidIdentifier, TableNotFound
from cipherdb.SchemaInspector import SchemaInspector


@pytest.mark.asyncio
async def test_list_tables_is_ordered_by_name(connection):
    tables = await SchemaInspector(connection).list_tables()

    assert [t.name for t in tables] == [
        "customers",
        "line_items",
        "order_totals",
        "orders",
        "products",
    ]
    kinds = {t.name: t.kind for t in tables}
    assert kinds["order_totals"] == "view"
    assert kinds["orders"] == "table"
    assert all(t.sql.startswith("CREATE") for t in tables)


@pytest.mark.asyncio
async def test_list_tables_with_name_filter(connection):
    tables = await SchemaInspector(connection).list_tables(["orders", "customers", "ghost"])

    assert [t.name for t in tables] == ["customers", "orders"]


@pytest.mark.asyncio
async def test_internal_tables_are_hidden(edge_connection):
    names = [t.name for t in await SchemaInspector(edge_connection).list_tables()]

    assert names == ["counters", "events"]
    assert "sqlite_sequence" not in names


@pytest.mark.asyncio
async def test_get_schema_returns_columns_in_declaration_order(connection):
    columns = await SchemaInspector(connection).get_schema("customers")

    assert [c.name for c in columns] == ["id", "name", "email", "city", "created_at"]
    assert [c.position for c in columns] == [0, 1, 2, 3, 4]

    by_name = {c.name: c for c in columns}
    assert by_name["id"].primary_key is True
    assert by_name["id"].type == "INTEGER"
    assert by_name["name"].nullable is False
    assert by_name["city"].nullable is True
    assert by_name["city"].primary_key is False


@pytest.mark.asyncio
async def test_get_schema_keeps_default_expression(connection):
    columns = await SchemaInspector(connection).get_schema("orders")

    status = next(c for c in columns if c.name == "status")
    assert status.default == "'pending'"


@pytest.mark.asyncio
async def test_get_schema_unknown_table(connection):
    with pytest.raises(TableNotFound):
        await SchemaInspector(connection).get_schema("ghost")


@pytest.mark.asyncio
async def test_get_schema_rejects_unsafe_name(connection):
    with pytest.raises(InvalidIdentifier):
        await SchemaInspector(connection).get_schema("customers; DROP TABLE orders")


@pytest.mark.asyncio
async def test_foreign_keys_for_whole_database(connection):
    edges = await SchemaInspector(connection).get_foreign_keys()

    assert {(e.table, e.from_column, e.referenced_table, e.to_column) for e in edges} == {
        ("orders", "customer_id", "customers", "id"),
        ("line_items", "order_id", "orders", "id"),
        ("line_items", "product_id", "products", "id"),
    }
    cascade = next(e for e in edges if e.table == "orders")
    assert cascade.on_delete == "CASCADE"


@pytest.mark.asyncio
async def test_foreign_keys_for_one_table_are_outgoing_only(connection):
    edges = await SchemaInspector(connection).get_foreign_keys("orders")

    assert [(e.table, e.referenced_table) for e in edges] == [("orders", "customers")]


@pytest.mark.asyncio
async def test_foreign_key_probe_failure_is_isolated(connection):
    inspector = SchemaInspector(connection)
    original = inspector._table_foreign_keys

    async def flaky(table):
        if table == "line_items":
            raise sqlcipher.OperationalError("disk I/O error")
        return await original(table)

    inspector._table_foreign_keys = flaky
    edges = await inspector.get_foreign_keys()

    assert [(e.table, e.referenced_table) for e in edges] == [("orders", "customers")]


@pytest.mark.asyncio
async def test_indexes_for_one_table(connection):
    indexes = await SchemaInspector(connection).get_indexes("line_items")

    assert len(indexes) == 1
    index = indexes[0]
    assert index.name == "idx_line_items_order_product"
    assert index.table == "line_items"
    assert index.columns == ["order_id", "product_id"]
    assert index.unique is False


@pytest.mark.asyncio
async def test_indexes_for_whole_database(connection):
    indexes = await SchemaInspector(connection).get_indexes()

    by_name = {i.name: i for i in indexes}
    assert set(by_name) == {
        "idx_customers_email",
        "idx_orders_customer",
        "idx_line_items_order_product",
    }
    assert by_name["idx_customers_email"].unique is True
    assert by_name["idx_customers_email"].columns == ["email"]


@pytest.mark.asyncio
async def test_index_with_failed_column_lookup_is_omitted(connection):
    inspector = SchemaInspector(connection)

    async def broken(index_name):
        raise sqlcipher.OperationalError("boom")

    inspector._index_columns = broken
    assert await inspector.get_indexes("customers") == []


@pytest.mark.asyncio
async def test_row_counts_are_aligned_with_tables(connection):
    inspector = SchemaInspector(connection)
    tables = await inspector.list_tables(["customers", "products"])

    assert await inspector.row_counts(tables) == [8, 6]


@pytest.mark.asyncio
async def test_get_table_info(connection):
    info = await SchemaInspector(connection).get_table_info("orders")

    assert info.name == "orders"
    assert info.kind == "table"
    assert info.row_count == 20
    assert info.column_count == 5
    assert "CREATE TABLE orders" in info.sql


@pytest.mark.asyncio
async def test_get_table_info_unknown_table(connection):
    with pytest.raises(TableNotFound):
        await SchemaInspector(connection).get_table_info("ghost")


@pytest.mark.asyncio
async def test_get_database_info(connection, sample_db):
    info = await SchemaInspector(connection).get_database_info(sample_db)

    assert info.path == sample_db
    assert info.size_bytes == os.path.getsize(sample_db)
    assert info.page_size > 0
    assert info.page_count * info.page_size == info.size_bytes
    assert info.encoding == "UTF-8"
    assert info.sqlite_version.count(".") == 2
    assert info.user_version == 0


@pytest.mark.asyncio
async def test_database_info_tolerates_missing_file_size(connection, tmp_path):
    info = await SchemaInspector(connection).get_database_info(str(tmp_path / "gone.db"))

    assert info.size_bytes is None
    assert info.page_size > 0


@pytest.mark.asyncio
async def test_database_info_probe_failure_aborts(connection, sample_db, monkeypatch):
    original = inspector_module.fetch_value

    async def failing(conn, sql, parameters=()):
        if sql == "PRAGMA page_count":
            raise sqlcipher.DatabaseError("database disk image is malformed")
        return await original(conn, sql, parameters)

    monkeypatch.setattr(inspector_module, "fetch_value", failing)

    with pytest.raises(InfoUnavailable):
        await SchemaInspector(connection).get_database_info(sample_db)
