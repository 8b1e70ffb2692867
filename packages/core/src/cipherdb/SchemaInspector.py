"""Schema introspection through the catalog and pragma statements.

Catalog-wide lookups (foreign keys, indexes, row counts) fan out one probe
per table over the same connection. A table whose probe fails contributes
nothing to the aggregate; the database metadata probes are the exception and
must all succeed.
"""

import os
from collections.abc import Sequence

import aiosqlite
import structlog
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.errors import InfoUnavailable, QueryFailed, TableNotFound
from cipherdb.fanout import fan_out, probe
from cipherdb.identifiers import quote_catalog_identifier, sanitize_identifier
from cipherdb.models import (
    ColumnDescriptor,
    DatabaseInfo,
    ForeignKeyEdge,
    IndexDescriptor,
    TableDescriptor,
    TableInfo,
)
from cipherdb.rows import fetch_all, fetch_one, fetch_value

logger = structlog.get_logger(__name__)


_CATALOG_QUERY = """
    SELECT name, type, sql
    FROM sqlite_master
    WHERE type IN ('table', 'view')
        AND name NOT LIKE 'sqlite_%'
"""

METADATA_PRAGMAS = [
    "user_version",
    "application_id",
    "page_size",
    "page_count",
    "encoding",
    "freelist_count",
    "schema_version",
]


def _column_from_pragma(row: dict) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=row["name"],
        type=row["type"] or None,
        position=row["cid"],
        nullable=not row["notnull"],
        default=row["dflt_value"],
        primary_key=bool(row["pk"]),
    )


def _edge_from_pragma(table: str, row: dict) -> ForeignKeyEdge:
    return ForeignKeyEdge(
        table=table,
        from_column=row["from"],
        referenced_table=row["table"],
        to_column=row["to"],
        on_update=row["on_update"],
        on_delete=row["on_delete"],
        id=row["id"],
        seq=row["seq"],
    )


class SchemaInspector:
    """Reads table, column, foreign-key and index metadata."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_tables(
        self, table_names: Sequence[str] | None = None
    ) -> list[TableDescriptor]:
        """List tables and views ordered by name.

        Args:
            table_names: Optional set of names to restrict the listing to.
        """
        query = _CATALOG_QUERY
        params: list[str] = []
        if table_names:
            params = list(table_names)
            query += f" AND name IN ({', '.join('?' for _ in params)})"
        query += " ORDER BY name"

        try:
            rows = await fetch_all(self._connection, query, params)
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to get table list: {e}") from e
        return [TableDescriptor(name=r["name"], kind=r["type"], sql=r["sql"]) for r in rows]

    async def require_table(self, table_name: object) -> TableDescriptor:
        """Return the catalog entry for a caller-supplied table name.

        Raises:
            InvalidIdentifier: If the name is not a safe identifier.
            TableNotFound: If no table or view has that name.
        """
        name = sanitize_identifier(table_name)
        try:
            row = await fetch_one(
                self._connection,
                "SELECT name, type, sql FROM sqlite_master "
                "WHERE type IN ('table', 'view') AND name = ?",
                [name],
            )
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to verify table: {e}") from e
        if row is None:
            raise TableNotFound(f'Table "{name}" does not exist')
        return TableDescriptor(name=row["name"], kind=row["type"], sql=row["sql"])

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    async def _table_columns(self, table: str) -> list[ColumnDescriptor]:
        rows = await fetch_all(
            self._connection, f"PRAGMA table_info({quote_catalog_identifier(table)})"
        )
        return [_column_from_pragma(r) for r in rows]

    async def get_schema(self, table_name: object) -> list[ColumnDescriptor]:
        """Return the columns of a table in declaration order."""
        table = await self.require_table(table_name)
        try:
            return await self._table_columns(table.name)
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to get table info: {e}") from e

    async def columns_by_table(
        self, tables: Sequence[TableDescriptor]
    ) -> list[list[ColumnDescriptor]]:
        """Fan out ``PRAGMA table_info`` over many tables.

        The result is aligned with ``tables``; a failed lookup yields ``[]``.
        """
        return await fan_out(
            probe(self._table_columns(t.name), [], table=t.name, probe_kind="table_info")
            for t in tables
        )

    # ------------------------------------------------------------------
    # Foreign keys
    # ------------------------------------------------------------------

    async def _table_foreign_keys(self, table: str) -> list[ForeignKeyEdge]:
        rows = await fetch_all(
            self._connection,
            f"PRAGMA foreign_key_list({quote_catalog_identifier(table)})",
        )
        return [_edge_from_pragma(table, r) for r in rows]

    async def get_foreign_keys(self, table_name: object = None) -> list[ForeignKeyEdge]:
        """Return foreign-key edges tagged with their owning table.

        With a table name, only that table's own edges are returned. Without
        one, every cataloged table is scanned concurrently and the edges are
        concatenated in table-name order.
        """
        if table_name:
            table = await self.require_table(table_name)
            try:
                return await self._table_foreign_keys(table.name)
            except sqlcipher.Error as e:
                raise QueryFailed(f"Failed to get foreign keys: {e}") from e

        tables = await self.list_tables()
        per_table = await fan_out(
            probe(
                self._table_foreign_keys(t.name),
                [],
                table=t.name,
                probe_kind="foreign_key_list",
            )
            for t in tables
        )
        return [edge for edges in per_table for edge in edges]

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    async def _index_columns(self, index_name: str) -> list[str]:
        rows = await fetch_all(
            self._connection,
            f"PRAGMA index_info({quote_catalog_identifier(index_name)})",
        )
        return [r["name"] for r in sorted(rows, key=lambda r: r["seqno"])]

    async def _table_indexes(self, table: str) -> list[IndexDescriptor]:
        rows = await fetch_all(
            self._connection, f"PRAGMA index_list({quote_catalog_identifier(table)})"
        )
        # None marks an index whose column lookup failed; it is dropped.
        columns = await fan_out(
            probe(
                self._index_columns(r["name"]),
                None,
                table=table,
                index=r["name"],
                probe_kind="index_info",
            )
            for r in rows
        )
        return [
            IndexDescriptor(
                name=row["name"],
                table=table,
                unique=bool(row["unique"]),
                columns=cols,
                origin=row.get("origin"),
                partial=bool(row.get("partial", 0)),
            )
            for row, cols in zip(rows, columns)
            if cols is not None
        ]

    async def get_indexes(self, table_name: object = None) -> list[IndexDescriptor]:
        """Return indexes with their ordered column lists.

        Per-table index lists and per-index column lookups are nested
        fan-outs; the result is only returned once both levels are done.
        """
        if table_name:
            table = await self.require_table(table_name)
            try:
                return await self._table_indexes(table.name)
            except sqlcipher.Error as e:
                raise QueryFailed(f"Failed to get indexes: {e}") from e

        tables = await self.list_tables()
        per_table = await fan_out(
            probe(self._table_indexes(t.name), [], table=t.name, probe_kind="index_list")
            for t in tables
        )
        return [index for indexes in per_table for index in indexes]

    # ------------------------------------------------------------------
    # Row counts, table and database info
    # ------------------------------------------------------------------

    async def count_rows(self, table: str) -> int:
        value = await fetch_value(
            self._connection, f"SELECT COUNT(*) FROM {quote_catalog_identifier(table)}"
        )
        return value or 0

    async def row_counts(self, tables: Sequence[TableDescriptor]) -> list[int | None]:
        """Best-effort ``COUNT(*)`` per table, aligned with ``tables``."""
        return await fan_out(
            probe(self.count_rows(t.name), None, table=t.name, probe_kind="row_count")
            for t in tables
        )

    async def get_table_info(self, table_name: object) -> TableInfo:
        """Return kind, exact row count, column count and defining SQL."""
        table = await self.require_table(table_name)
        try:
            row_count = await self.count_rows(table.name)
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to count rows: {e}") from e
        try:
            columns = await self._table_columns(table.name)
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to get column info: {e}") from e

        return TableInfo(
            name=table.name,
            kind=table.kind,
            row_count=row_count,
            column_count=len(columns),
            sql=table.sql,
        )

    async def get_database_info(self, db_path: str) -> DatabaseInfo:
        """Collect engine and file metadata.

        The file size is best effort. Every metadata probe must succeed: a
        failure means the connection itself is unhealthy, and the whole call
        fails with :class:`InfoUnavailable`.
        """
        size_bytes: int | None = None
        try:
            size_bytes = os.stat(db_path).st_size
        except OSError as e:
            logger.debug("file_stat_failed", path=db_path, error=str(e))

        try:
            version, *values = await fan_out(
                [
                    fetch_value(self._connection, "SELECT sqlite_version()"),
                    *(
                        fetch_value(self._connection, f"PRAGMA {pragma}")
                        for pragma in METADATA_PRAGMAS
                    ),
                ]
            )
        except sqlcipher.Error as e:
            raise InfoUnavailable(f"Failed to get database info: {e}") from e

        return DatabaseInfo(
            path=db_path,
            sqlite_version=version,
            size_bytes=size_bytes,
            **dict(zip(METADATA_PRAGMAS, values)),
        )
