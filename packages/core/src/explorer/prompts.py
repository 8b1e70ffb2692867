"""Markdown prompts that guide a client through a database.

Each builder gathers what it needs through the service, so it sees the
same validation, connection handling and secret scrubbing as a direct
operation call. A failed lookup is reported inside the prompt text.
"""

from explorer.ExplorerService import ExplorerService
from explorer.models import ToolResult
from explorer.suggestions import DEFAULT_INTENT, INTENTS


def _with_path(arguments: dict, database_path: str | None) -> dict:
    if database_path:
        arguments["database_path"] = database_path
    return arguments


def _failure(result: ToolResult) -> str:
    return f"**Error ({result.error_kind}):** {result.error}"


async def explore_database_schema(
    service: ExplorerService, database_path: str | None = None
) -> str:
    """Overview of every table with its row count."""
    result = await service.call_tool("list_tables", _with_path({}, database_path))
    if not result.success:
        return _failure(result)

    tables = result.data
    lines = [
        "## Database schema",
        "",
        f"I found **{len(tables)}** table(s) in the database.",
        "",
    ]
    for table in tables:
        count = table["row_count"] if table["row_count"] is not None else "unknown"
        lines.append(f"- `{table['name']}` ({table['type']}) - {count} rows")
    lines += [
        "",
        "Next steps:",
        "1. Show the detailed schema for a specific table.",
        "2. Show foreign key relationships.",
        "3. Analyze the data in a specific table.",
    ]
    return "\n".join(lines)


async def describe_table_structure(
    service: ExplorerService, table_name: str, database_path: str | None = None
) -> str:
    """Columns, keys, indexes and a few sample rows of one table."""
    if not table_name:
        return "Please provide the table name you want to explore."

    arguments = _with_path({"table_name": table_name}, database_path)
    schema = await service.call_tool("get_table_schema", arguments)
    if not schema.success:
        return _failure(schema)
    info = await service.call_tool("get_table_info", arguments)
    if not info.success:
        return _failure(info)
    sample = await service.call_tool("sample_table_data", {**arguments, "limit": 5})
    if not sample.success:
        return _failure(sample)

    lines = [
        f"## Table `{table_name}`",
        "",
        f"- Type: {info.data['type']}",
        f"- Rows: {info.data['row_count']}",
        f"- Columns: {info.data['column_count']}",
        "",
        "### Columns",
    ]
    for column in schema.data["columns"]:
        line = f"- `{column['name']}` ({column['type'] or 'UNKNOWN'})"
        if column["primary_key"]:
            line += " [PRIMARY KEY]"
        if not column["nullable"]:
            line += " [NOT NULL]"
        lines.append(line)

    if schema.data["foreign_keys"]:
        lines += ["", "### Foreign keys"]
        lines += [
            f"- `{fk['from']}` -> `{fk['referenced_table']}.{fk['to']}`"
            for fk in schema.data["foreign_keys"]
        ]

    if schema.data["indexes"]:
        lines += ["", "### Indexes"]
        lines += [
            f"- `{index['name']}` ({', '.join(str(c) for c in index['columns'])})"
            + (" UNIQUE" if index["unique"] else "")
            for index in schema.data["indexes"]
        ]

    lines += ["", "### Sample data (first 5 rows)"]
    if sample.data["rows"]:
        lines.append(" | ".join(sample.data["columns"]))
        for row in sample.data["rows"]:
            lines.append(" | ".join(str(row[c]) for c in sample.data["columns"]))
    else:
        lines.append("The table is empty.")
    return "\n".join(lines)


async def find_data_relationships(
    service: ExplorerService,
    table_name: str | None = None,
    database_path: str | None = None,
) -> str:
    """Foreign-key relationships of one table, or of the whole database."""
    if table_name:
        result = await service.call_tool(
            "find_related_tables", _with_path({"table_name": table_name}, database_path)
        )
        if not result.success:
            return _failure(result)
        related = result.data
        lines = [f"## Relationships for `{table_name}`", ""]
        lines.append("### References")
        lines += [
            f"- `{fk['from']}` -> `{fk['referenced_table']}.{fk['to']}`"
            for fk in related["outgoing_foreign_keys"]
        ] or ["- none"]
        lines += ["", "### Referenced by"]
        lines += [
            f"- `{fk['table']}.{fk['from']}` -> `{fk['to']}`"
            for fk in related["incoming_foreign_keys"]
        ] or ["- none"]
        return "\n".join(lines)

    result = await service.call_tool("get_foreign_keys", _with_path({}, database_path))
    if not result.success:
        return _failure(result)
    if not result.data:
        return "No foreign key relationships found."

    by_table: dict[str, list[dict]] = {}
    for fk in result.data:
        by_table.setdefault(fk["table"], []).append(fk)

    lines = ["## All foreign key relationships", ""]
    for table, edges in by_table.items():
        lines.append(f"### {table}")
        lines += [f"- `{fk['from']}` -> `{fk['referenced_table']}.{fk['to']}`" for fk in edges]
        lines.append("")
    return "\n".join(lines).rstrip()


async def generate_query_template(
    service: ExplorerService,
    table_name: str,
    intent: str | None = None,
    database_path: str | None = None,
) -> str:
    """Ready-to-edit SQL for a table and an intent."""
    if not table_name:
        return (
            "Please provide the table name and what you want to do "
            f"({', '.join(INTENTS)})."
        )

    intent = intent or DEFAULT_INTENT
    result = await service.call_tool(
        "suggest_query",
        _with_path({"table_name": table_name, "intent": intent}, database_path),
    )
    if not result.success:
        return _failure(result)

    templates = result.data["templates"]
    if not templates:
        return f"No `{intent}` template fits table `{table_name}`."

    lines = [f"## Query templates for `{table_name}` (intent: {intent})", ""]
    for number, template in enumerate(templates, start=1):
        lines += [f"{number}. {template['description']}:", "```sql", template["query"], "```", ""]
    return "\n".join(lines).rstrip()
