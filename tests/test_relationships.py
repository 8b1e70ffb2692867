"""Tests for foreign-key neighbourhoods."""

import pytest

from cipherdb.errors import TableNotFound
from cipherdb.RelationshipResolver import RelationshipResolver


@pytest.mark.asyncio
async def test_orders_references_customers_and_is_referenced_by_line_items(connection):
    related = await RelationshipResolver(connection).related_tables("orders")

    assert related.references_tables == ["customers"]
    assert related.referenced_by_tables == ["line_items"]
    assert [(e.from_column, e.to_column) for e in related.outgoing] == [("customer_id", "id")]
    assert [(e.table, e.from_column) for e in related.incoming] == [("line_items", "order_id")]


@pytest.mark.asyncio
async def test_root_table_has_only_incoming_edges(connection):
    related = await RelationshipResolver(connection).related_tables("customers")

    assert related.references_tables == []
    assert related.referenced_by_tables == ["orders"]


@pytest.mark.asyncio
async def test_leaf_table_references_are_deduplicated(connection):
    related = await RelationshipResolver(connection).related_tables("line_items")

    assert related.references_tables == ["orders", "products"]
    assert related.referenced_by_tables == []
    assert len(related.outgoing) == 2


@pytest.mark.asyncio
async def test_related_tables_dict_keeps_full_edges(connection):
    data = (await RelationshipResolver(connection).related_tables("products")).to_dict()

    assert data["table_name"] == "products"
    assert data["referenced_by_tables"] == ["line_items"]
    assert data["incoming_foreign_keys"][0]["from"] == "product_id"
    assert data["outgoing_foreign_keys"] == []


@pytest.mark.asyncio
async def test_unknown_table(connection):
    with pytest.raises(TableNotFound):
        await RelationshipResolver(connection).related_tables("ghost")
