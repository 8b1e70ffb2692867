"""Tests for the REPL commands and text formatting."""

from cli.formatting import format_grid, format_mapping, format_records
from cli.main import HELP_TEXT, run_command


def test_format_grid():
    text = format_grid(["id", "name"], [{"id": 1, "name": "Alice"}, {"id": 2, "name": None}])

    assert text.splitlines() == [
        "+----+-------+",
        "| id | name  |",
        "+----+-------+",
        "| 1  | Alice |",
        "| 2  | NULL  |",
        "+----+-------+",
    ]


def test_format_grid_truncates_and_summarises_blobs():
    text = format_grid(["a", "b"], [{"a": "x" * 100, "b": b"\x00\x01\x02"}])

    assert "x" * 37 + "..." in text
    assert "<blob 3 bytes>" in text


def test_format_grid_without_columns():
    assert format_grid([], []) == "(no columns)"


def test_format_records_empty():
    assert format_records([]) == "(no rows)"


def test_format_mapping_aligns_keys():
    assert format_mapping({"a": 1, "long": None}) == "a    : 1\nlong : NULL"


def test_help(service):
    assert run_command(service, ".help") == HELP_TEXT


def test_unknown_dot_command(service):
    assert run_command(service, ".frobnicate") == (
        "Unknown command: .frobnicate. Type .help for help."
    )


def test_select_statement(service):
    text = run_command(service, "SELECT name FROM customers ORDER BY id LIMIT 1")

    assert "Customer 1" in text
    assert text.endswith("(1 row(s))")


def test_write_statement_is_an_error(service):
    text = run_command(service, "DELETE FROM customers")

    assert text.startswith("Error [WriteQueryRejected]:")


def test_tables_command(service):
    text = run_command(service, ".tables")

    assert "line_items" in text
    assert "row_count" in text


def test_schema_command(service):
    text = run_command(service, ".schema orders")

    assert "Foreign keys:" in text
    assert "customer_id -> customers.id" in text
    assert "idx_orders_customer (customer_id)" in text


def test_schema_command_needs_a_table(service):
    assert run_command(service, ".schema") == "Usage: .schema <table>"


def test_stats_command(service):
    text = run_command(service, ".stats customers")

    assert text.startswith("customers: 8 row(s), 5 column(s)")


def test_related_command(service):
    text = run_command(service, ".related orders")

    assert text == "orders references: customers\norders is referenced by: line_items"


def test_info_command(service):
    assert "page_size" in run_command(service, ".info")
