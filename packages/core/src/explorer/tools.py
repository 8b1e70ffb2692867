"""Catalog of the operations exposed by every front end.

Each entry names an operation and declares its parameters as a JSON
schema. The HTTP front end lists the catalog and the stdio server
registers one tool per entry.
"""

from explorer.validators import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_SAMPLE_SIZE,
    DEFAULT_OFFSET,
    DEFAULT_TIMEOUT_MS,
    LIMIT_BOUNDS,
    MAX_SAMPLE_SIZE_BOUNDS,
    OFFSET_BOUNDS,
    TIMEOUT_MS_BOUNDS,
)

_DATABASE_PATH = {
    "type": "string",
    "description": (
        "Path to the database file. Optional when SQLCIPHER_DATABASE_PATH is set."
    ),
}

_TABLE_NAME = {"type": "string", "description": "Name of the table."}


def _bounded(description: str, bounds: tuple[int, int], default: int) -> dict:
    minimum, maximum = bounds
    return {
        "type": "integer",
        "description": description,
        "minimum": minimum,
        "maximum": maximum,
        "default": default,
    }


def _tool(
    name: str,
    description: str,
    properties: dict | None = None,
    required: list[str] | None = None,
) -> dict:
    return {
        "name": name,
        "description": description,
        "parameters": {
            "type": "object",
            "properties": {**(properties or {}), "database_path": _DATABASE_PATH},
            "required": required or [],
        },
    }


TOOL_DEFINITIONS = [
    _tool(
        "execute_query",
        "Execute a read-only SQL SELECT query and return the results. "
        "Only SELECT statements are allowed.",
        {"query": {"type": "string", "description": "A SQL SELECT statement to execute."}},
        ["query"],
    ),
    _tool(
        "list_tables",
        "List all tables and views with their row counts.",
        {
            "table_names": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional list of table names to restrict the listing to.",
            }
        },
    ),
    _tool(
        "get_table_schema",
        "Describe the columns, foreign keys and indexes of one or more tables.",
        {
            "table_name": {
                "anyOf": [
                    {"type": "string"},
                    {"type": "array", "items": {"type": "string"}, "minItems": 1},
                ],
                "description": "A table name or a list of table names.",
            }
        },
        ["table_name"],
    ),
    _tool(
        "list_columns",
        "List the columns of a table in declaration order.",
        {"table_name": _TABLE_NAME},
        ["table_name"],
    ),
    _tool(
        "get_foreign_keys",
        "Get foreign key relationships for one table, or for the whole database.",
        {"table_name": {**_TABLE_NAME, "description": "Optional table name."}},
    ),
    _tool(
        "get_indexes",
        "Get indexes and their columns for one table, or for the whole database.",
        {"table_name": {**_TABLE_NAME, "description": "Optional table name."}},
    ),
    _tool(
        "get_database_info",
        "Get database metadata: engine version, file size, page size and count, "
        "encoding and version numbers.",
    ),
    _tool(
        "get_table_info",
        "Get the kind, exact row count, column count and defining SQL of a table.",
        {"table_name": _TABLE_NAME},
        ["table_name"],
    ),
    _tool(
        "test_connection",
        "Open and verify the database, then close it.",
    ),
    _tool(
        "explain_query",
        "Show the query plan for a read-only SELECT query.",
        {"query": {"type": "string", "description": "A SQL SELECT statement."}},
        ["query"],
    ),
    _tool(
        "validate_query_syntax",
        "Check whether a query is an allowed SELECT and compiles against the schema.",
        {"query": {"type": "string", "description": "A SQL SELECT statement."}},
        ["query"],
    ),
    _tool(
        "suggest_query",
        "Build a SQL query template for a table.",
        {
            "table_name": _TABLE_NAME,
            "intent": {
                "type": "string",
                "enum": ["count", "sample", "aggregate", "join", "search"],
                "default": "sample",
                "description": "Kind of query to suggest.",
            },
        },
        ["table_name"],
    ),
    _tool(
        "get_table_statistics",
        "Compute row count and per-column statistics for a table.",
        {
            "table_name": _TABLE_NAME,
            "max_sample_size": _bounded(
                "Upper bound on rows considered for statistics.",
                MAX_SAMPLE_SIZE_BOUNDS,
                DEFAULT_MAX_SAMPLE_SIZE,
            ),
            "timeout_ms": _bounded(
                "Deadline for the whole operation in milliseconds.",
                TIMEOUT_MS_BOUNDS,
                DEFAULT_TIMEOUT_MS,
            ),
        },
        ["table_name"],
    ),
    _tool(
        "sample_table_data",
        "Return a page of rows from a table.",
        {
            "table_name": _TABLE_NAME,
            "limit": _bounded("Number of rows to return.", LIMIT_BOUNDS, DEFAULT_LIMIT),
            "offset": _bounded("Number of rows to skip.", OFFSET_BOUNDS, DEFAULT_OFFSET),
            "columns": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional subset of columns to return.",
            },
        },
        ["table_name"],
    ),
    _tool(
        "get_column_statistics",
        "Compute distinct, null and numeric statistics plus sample values for columns.",
        {
            "table_name": _TABLE_NAME,
            "column_name": {
                "anyOf": [
                    {"type": "string"},
                    {"type": "array", "items": {"type": "string"}, "minItems": 1},
                ],
                "description": "A column name or a list of column names.",
            },
            "max_sample_size": _bounded(
                "Upper bound on rows considered for statistics.",
                MAX_SAMPLE_SIZE_BOUNDS,
                DEFAULT_MAX_SAMPLE_SIZE,
            ),
        },
        ["table_name", "column_name"],
    ),
    _tool(
        "search_tables",
        "Find tables whose name matches a LIKE pattern (% and _ wildcards).",
        {"pattern": {"type": "string", "description": "LIKE pattern, e.g. %order%."}},
        ["pattern"],
    ),
    _tool(
        "search_columns",
        "Find columns across all tables whose name matches a LIKE pattern.",
        {"pattern": {"type": "string", "description": "LIKE pattern, e.g. %_id."}},
        ["pattern"],
    ),
    _tool(
        "find_related_tables",
        "Find the tables a table references and the tables that reference it.",
        {"table_name": _TABLE_NAME},
        ["table_name"],
    ),
]

TOOL_NAMES = [tool["name"] for tool in TOOL_DEFINITIONS]


def get_tool(name: str) -> dict | None:
    return next((tool for tool in TOOL_DEFINITIONS if tool["name"] == name), None)
