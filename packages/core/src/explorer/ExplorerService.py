"""Operation layer: one call, one connection, one result envelope."""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite
import structlog
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.DatabaseProvider import DatabaseProvider
from cipherdb.errors import (
    ExplorerError,
    OperationTimeout,
    QueryFailed,
    UnknownOperation,
)
from cipherdb.fanout import fan_out
from cipherdb.identifiers import sanitize_identifier
from cipherdb.QueryExecutor import QueryExecutor, validate_select_query
from cipherdb.RelationshipResolver import RelationshipResolver
from cipherdb.SchemaInspector import SchemaInspector
from cipherdb.SchemaSearch import SchemaSearch
from cipherdb.StatisticsAggregator import StatisticsAggregator
from explorer.config import ExplorerConfig
from explorer.models import ToolResult
from explorer.suggestions import DEFAULT_INTENT, build_query_templates
from explorer.validators import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_SAMPLE_SIZE,
    DEFAULT_OFFSET,
    DEFAULT_TIMEOUT_MS,
    LIMIT_BOUNDS,
    MAX_SAMPLE_SIZE_BOUNDS,
    OFFSET_BOUNDS,
    TIMEOUT_MS_BOUNDS,
    bounded_int,
    optional_string,
    require_arguments,
    required_string,
    string_list,
    table_name,
)

logger = structlog.get_logger(__name__)

SECRET_PLACEHOLDER = "***"

Payload = tuple[Any, str]
Handler = Callable[[dict[str, Any]], Awaitable[Payload]]


class ExplorerService:
    """Runs catalog operations by name.

    Every call resolves its database path, opens a fresh verified connection,
    runs, and closes the connection whatever the outcome. :meth:`call_tool`
    never raises: failures come back as a :class:`ToolResult` carrying an
    error kind.
    """

    def __init__(self, config: ExplorerConfig) -> None:
        self._config = config
        self._handlers: dict[str, Handler] = {
            "execute_query": self.execute_query,
            "list_tables": self.list_tables,
            "get_table_schema": self.get_table_schema,
            "list_columns": self.list_columns,
            "get_foreign_keys": self.get_foreign_keys,
            "get_indexes": self.get_indexes,
            "get_database_info": self.get_database_info,
            "get_table_info": self.get_table_info,
            "test_connection": self.test_connection,
            "explain_query": self.explain_query,
            "validate_query_syntax": self.validate_query_syntax,
            "suggest_query": self.suggest_query,
            "get_table_statistics": self.get_table_statistics,
            "sample_table_data": self.sample_table_data,
            "get_column_statistics": self.get_column_statistics,
            "search_tables": self.search_tables,
            "search_columns": self.search_columns,
            "find_related_tables": self.find_related_tables,
        }

    @property
    def config(self) -> ExplorerConfig:
        return self._config

    @property
    def operations(self) -> list[str]:
        return list(self._handlers)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def call_tool(self, name: str, arguments: object) -> ToolResult:
        """Run the named operation and wrap its outcome.

        Args:
            name: Operation name from the catalog.
            arguments: Flat argument mapping for the operation.

        Returns:
            A successful result with the operation's data, or a failed
            result with a scrubbed message and an error kind.
        """
        log = logger.bind(operation=name)
        started = time.perf_counter()

        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownOperation(f"Unknown tool: {name}")
            data, message = await handler(require_arguments(arguments))
        except ExplorerError as e:
            error = self._scrub(e.message)
            log.warning("operation_failed", error_kind=e.kind, error=error)
            return ToolResult.fail(error, e.kind)
        except sqlcipher.Error as e:
            error = self._scrub(f"Query execution failed: {e}")
            log.warning("operation_failed", error_kind=QueryFailed.kind, error=error)
            return ToolResult.fail(error, QueryFailed.kind)
        except Exception as e:  # noqa: BLE001
            log.exception("operation_failed", error_kind="InternalError")
            return ToolResult.fail(self._scrub(f"Internal error: {e}"), "InternalError")

        log.info(
            "operation_completed",
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return ToolResult.ok(data, message)

    def _scrub(self, message: str) -> str:
        secret = self._config.password
        if secret and secret.strip() and secret in message:
            return message.replace(secret, SECRET_PLACEHOLDER)
        return message

    @asynccontextmanager
    async def _connect(self, arguments: dict[str, Any]) -> AsyncIterator[aiosqlite.Connection]:
        path = self._config.resolve_database_path(arguments.get("database_path"))
        provider = DatabaseProvider(path, self._config.password)
        async with provider.connect() as connection:
            yield connection

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def execute_query(self, arguments: dict[str, Any]) -> Payload:
        query = arguments.get("query")
        validate_select_query(query)
        async with self._connect(arguments) as connection:
            result = await QueryExecutor(connection).execute_safe_query(query)
        return result.to_dict(), f"Query returned {result.row_count} row(s)"

    async def explain_query(self, arguments: dict[str, Any]) -> Payload:
        query = arguments.get("query")
        validate_select_query(query)
        async with self._connect(arguments) as connection:
            plan = await QueryExecutor(connection).explain_query_plan(query)
        return {"query": query, "plan": plan}, f"Query plan has {len(plan)} step(s)"

    async def validate_query_syntax(self, arguments: dict[str, Any]) -> Payload:
        query = arguments.get("query")
        try:
            validate_select_query(query)
        except ExplorerError as e:
            return {"valid": False, "error": e.message, "error_kind": e.kind}, "Query is not valid"

        async with self._connect(arguments) as connection:
            try:
                await QueryExecutor(connection).explain_query_plan(query)
            except ExplorerError as e:
                return (
                    {"valid": False, "error": self._scrub(e.message), "error_kind": e.kind},
                    "Query is not valid",
                )
        return {"valid": True}, "Query is valid"

    async def suggest_query(self, arguments: dict[str, Any]) -> Payload:
        intent = optional_string(arguments, "intent") or DEFAULT_INTENT
        name = table_name(arguments)
        async with self._connect(arguments) as connection:
            inspector = SchemaInspector(connection)
            table = await inspector.require_table(name)
            columns, foreign_keys = await fan_out(
                [inspector.get_schema(table.name), inspector.get_foreign_keys(table.name)]
            )
        templates = build_query_templates(table.name, columns, foreign_keys, intent)
        return (
            {"table_name": table.name, "intent": intent, "templates": templates},
            f"Generated {len(templates)} template(s)",
        )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def list_tables(self, arguments: dict[str, Any]) -> Payload:
        table_names = string_list(arguments, "table_names")
        async with self._connect(arguments) as connection:
            inspector = SchemaInspector(connection)
            tables = await inspector.list_tables(table_names)
            counts = await inspector.row_counts(tables)
        data = [
            {**table.to_dict(), "row_count": count}
            for table, count in zip(tables, counts)
        ]
        return data, f"Found {len(data)} table(s)"

    async def _describe(self, inspector: SchemaInspector, table: str) -> dict:
        columns, foreign_keys, indexes = await fan_out(
            [
                inspector.get_schema(table),
                inspector.get_foreign_keys(table),
                inspector.get_indexes(table),
            ]
        )
        return {
            "table_name": table,
            "columns": [c.to_dict() for c in columns],
            "foreign_keys": [fk.to_dict() for fk in foreign_keys],
            "indexes": [index.to_dict() for index in indexes],
        }

    async def get_table_schema(self, arguments: dict[str, Any]) -> Payload:
        single = isinstance(arguments.get("table_name"), str)
        names = [
            sanitize_identifier(name)
            for name in string_list(arguments, "table_name", required=True)
        ]
        async with self._connect(arguments) as connection:
            inspector = SchemaInspector(connection)
            # Unknown names fail the call before any table is described.
            tables = [await inspector.require_table(name) for name in names]
            schemas = await fan_out(self._describe(inspector, t.name) for t in tables)
        if single:
            return schemas[0], f"Schema for table {tables[0].name}"
        return schemas, f"Schema for {len(schemas)} table(s)"

    async def list_columns(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        async with self._connect(arguments) as connection:
            inspector = SchemaInspector(connection)
            columns = await inspector.get_schema(name)
        return [c.to_dict() for c in columns], f"Found {len(columns)} column(s)"

    async def get_foreign_keys(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments, required=False)
        async with self._connect(arguments) as connection:
            edges = await SchemaInspector(connection).get_foreign_keys(name)
        return [e.to_dict() for e in edges], f"Found {len(edges)} foreign key(s)"

    async def get_indexes(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments, required=False)
        async with self._connect(arguments) as connection:
            indexes = await SchemaInspector(connection).get_indexes(name)
        return [i.to_dict() for i in indexes], f"Found {len(indexes)} index(es)"

    async def get_database_info(self, arguments: dict[str, Any]) -> Payload:
        path = self._config.resolve_database_path(arguments.get("database_path"))
        async with self._connect(arguments) as connection:
            info = await SchemaInspector(connection).get_database_info(path)
        return info.to_dict(), "Database info retrieved"

    async def get_table_info(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        async with self._connect(arguments) as connection:
            info = await SchemaInspector(connection).get_table_info(name)
        return info.to_dict(), f"Table {info.name} has {info.row_count} row(s)"

    async def test_connection(self, arguments: dict[str, Any]) -> Payload:
        path = self._config.resolve_database_path(arguments.get("database_path"))
        async with self._connect(arguments):
            pass
        return (
            {"connected": True, "encrypted": self._config.password_configured, "database_path": path},
            "Connection successful",
        )

    # ------------------------------------------------------------------
    # Statistics and samples
    # ------------------------------------------------------------------

    async def get_table_statistics(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        max_sample_size = bounded_int(
            arguments, "max_sample_size", DEFAULT_MAX_SAMPLE_SIZE, MAX_SAMPLE_SIZE_BOUNDS
        )
        timeout_ms = bounded_int(arguments, "timeout_ms", DEFAULT_TIMEOUT_MS, TIMEOUT_MS_BOUNDS)

        try:
            async with asyncio.timeout(timeout_ms / 1000):
                async with self._connect(arguments) as connection:
                    stats = await StatisticsAggregator(connection).table_statistics(
                        name, max_sample_size
                    )
        except TimeoutError as e:
            raise OperationTimeout(
                f"Table statistics did not finish within {timeout_ms} ms"
            ) from e
        return stats.to_dict(), f"Statistics for {stats.column_count} column(s)"

    async def sample_table_data(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        limit = bounded_int(arguments, "limit", DEFAULT_LIMIT, LIMIT_BOUNDS)
        offset = bounded_int(arguments, "offset", DEFAULT_OFFSET, OFFSET_BOUNDS)
        columns = string_list(arguments, "columns")
        async with self._connect(arguments) as connection:
            sample = await StatisticsAggregator(connection).sample_rows(name, limit, offset, columns)
        return sample.to_dict(), f"Returned {sample.row_count} row(s)"

    async def get_column_statistics(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        columns = string_list(arguments, "column_name", required=True)
        max_sample_size = bounded_int(
            arguments, "max_sample_size", DEFAULT_MAX_SAMPLE_SIZE, MAX_SAMPLE_SIZE_BOUNDS
        )
        async with self._connect(arguments) as connection:
            stats = await StatisticsAggregator(connection).column_statistics(
                name, columns, max_sample_size
            )
        return [s.to_dict() for s in stats], f"Statistics for {len(stats)} column(s)"

    # ------------------------------------------------------------------
    # Search and relationships
    # ------------------------------------------------------------------

    async def search_tables(self, arguments: dict[str, Any]) -> Payload:
        pattern = required_string(arguments, "pattern")
        async with self._connect(arguments) as connection:
            tables = await SchemaSearch(connection).search_tables(pattern)
        return [t.to_dict() for t in tables], f"Found {len(tables)} matching table(s)"

    async def search_columns(self, arguments: dict[str, Any]) -> Payload:
        pattern = required_string(arguments, "pattern")
        async with self._connect(arguments) as connection:
            matches = await SchemaSearch(connection).search_columns(pattern)
        return [m.to_dict() for m in matches], f"Found {len(matches)} matching column(s)"

    async def find_related_tables(self, arguments: dict[str, Any]) -> Payload:
        name = table_name(arguments)
        async with self._connect(arguments) as connection:
            related = await RelationshipResolver(connection).related_tables(name)
        return (
            related.to_dict(),
            f"{related.table} references {len(related.references_tables)} table(s) "
            f"and is referenced by {len(related.referenced_by_tables)}",
        )
