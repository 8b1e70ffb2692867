"""Interactive read-only SQL shell for SQLCipher / SQLite databases."""

import argparse
import asyncio
from dataclasses import replace

from cli.formatting import format_grid, format_mapping, format_records
from explorer.config import ExplorerConfig
from explorer.ExplorerService import ExplorerService
from explorer.log_setup import configure_logging
from explorer.models import ToolResult

HELP_TEXT = """\
Enter a SELECT statement to run it, or one of:
  .tables              list tables with row counts
  .schema <table>      show columns, foreign keys and indexes
  .stats <table>       show per-column statistics
  .related <table>     show tables linked by foreign keys
  .info                show database metadata
  .help                show this message
  quit | exit          leave the shell"""


def _render_stats(data: dict) -> str:
    header = f"{data['table_name']}: {data['total_rows']} row(s), {data['column_count']} column(s)"
    if not data["columns"]:
        return header
    rows = [
        {
            "column": c["column_name"],
            "type": c["column_type"],
            "distinct": c["distinct_count"],
            "nulls": c["null_count"],
            "min": c.get("min_value"),
            "max": c.get("max_value"),
            "avg": c.get("avg_value"),
        }
        for c in data["columns"]
    ]
    return header + "\n" + format_records(rows)


def _render_schema(data: dict) -> str:
    parts = [format_records(data["columns"])]
    if data["foreign_keys"]:
        parts.append("Foreign keys:")
        parts += [
            f"  {fk['from']} -> {fk['referenced_table']}.{fk['to']}"
            for fk in data["foreign_keys"]
        ]
    if data["indexes"]:
        parts.append("Indexes:")
        parts += [
            f"  {ix['name']} ({', '.join(str(c) for c in ix['columns'])})"
            + (" UNIQUE" if ix["unique"] else "")
            for ix in data["indexes"]
        ]
    return "\n".join(parts)


def _render_related(data: dict) -> str:
    return (
        f"{data['table_name']} references: {', '.join(data['references_tables']) or '-'}\n"
        f"{data['table_name']} is referenced by: {', '.join(data['referenced_by_tables']) or '-'}"
    )


COMMANDS = {
    ".tables": ("list_tables", None, format_records),
    ".schema": ("get_table_schema", "table_name", _render_schema),
    ".stats": ("get_table_statistics", "table_name", _render_stats),
    ".related": ("find_related_tables", "table_name", _render_related),
    ".info": ("get_database_info", None, format_mapping),
}


def run_command(service: ExplorerService, line: str) -> str:
    """Execute one line of input and return the text to print."""
    command, _, rest = line.partition(" ")
    rest = rest.strip()

    if command == ".help":
        return HELP_TEXT

    if command in COMMANDS:
        operation, argument, render = COMMANDS[command]
        arguments = {}
        if argument:
            if not rest:
                return f"Usage: {command} <table>"
            arguments[argument] = rest
        result = asyncio.run(service.call_tool(operation, arguments))
        return render(result.data) if result.success else _error(result)

    if command.startswith("."):
        return f"Unknown command: {command}. Type .help for help."

    result = asyncio.run(service.call_tool("execute_query", {"query": line}))
    if not result.success:
        return _error(result)
    data = result.data
    return f"{format_grid(data['columns'], data['rows'])}\n({data['row_count']} row(s))"


def _error(result: ToolResult) -> str:
    return f"Error [{result.error_kind}]: {result.error}"


def main():
    """Run the interactive SQL REPL.

    Loads environment configuration, optionally overrides the database
    path from the command line, then enters a read-eval-print loop.
    """
    parser = argparse.ArgumentParser(description="Read-only SQLCipher/SQLite shell")
    parser.add_argument("database_path", nargs="?", help="Database file to open")
    args = parser.parse_args()

    config = ExplorerConfig.from_env()
    if args.database_path:
        config = replace(config, database_path=args.database_path)
    configure_logging(config.log_level, config.log_format)

    service = ExplorerService(config)
    for notice in config.warnings():
        print(f"Note: {notice}")

    print("SQLCipher Explorer (type .help for commands, 'quit' or 'exit' to stop)")
    print("-" * 70)

    while True:
        try:
            line = input("\nsql> ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            print("Goodbye!")
            break

        print(run_command(service, line))


if __name__ == "__main__":
    main()
