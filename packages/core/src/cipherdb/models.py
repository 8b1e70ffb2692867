"""Data models for catalog entries, schema metadata and statistics."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TableDescriptor:
    """A table or view listed in the catalog.

    Attributes:
        name: Catalog name of the table or view.
        kind: Either "table" or "view".
        sql: The defining ``CREATE`` statement, if the catalog has one.
        row_count: Optional row count attached by callers that probe it.
    """

    name: str
    kind: str
    sql: str | None = None
    row_count: int | None = None

    def to_dict(self) -> dict:
        result: dict = {"name": self.name, "type": self.kind, "sql": self.sql}
        if self.row_count is not None:
            result["row_count"] = self.row_count
        return result


@dataclass
class ColumnDescriptor:
    """A single column as reported by ``PRAGMA table_info``.

    Attributes:
        name: Column name.
        type: Declared type text; ``None`` when the column was declared
            without one.
        position: Zero-based ordinal in declaration order.
        nullable: False when the column carries ``NOT NULL``.
        default: Default value expression as written in the DDL.
        primary_key: True for any member of the primary key.
    """

    name: str
    type: str | None
    position: int
    nullable: bool
    default: Any = None
    primary_key: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "position": self.position,
            "nullable": self.nullable,
            "default": self.default,
            "primary_key": self.primary_key,
        }


@dataclass
class ForeignKeyEdge:
    """A foreign-key edge owned by ``table``.

    The edge itself is directionless; whether it is outgoing or incoming
    depends on which table you look at it from.
    """

    table: str
    from_column: str
    referenced_table: str
    to_column: str | None
    on_update: str = "NO ACTION"
    on_delete: str = "NO ACTION"
    id: int = 0
    seq: int = 0

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "from": self.from_column,
            "referenced_table": self.referenced_table,
            "to": self.to_column,
            "on_update": self.on_update,
            "on_delete": self.on_delete,
            "id": self.id,
            "seq": self.seq,
        }


@dataclass
class IndexDescriptor:
    name: str
    table: str
    unique: bool
    columns: list[str] = field(default_factory=list)
    origin: str | None = None
    partial: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "table": self.table,
            "unique": self.unique,
            "columns": list(self.columns),
            "origin": self.origin,
            "partial": self.partial,
        }


@dataclass
class ColumnStatistics:
    """Aggregate statistics for one column.

    ``min_value``, ``max_value`` and ``avg_value`` are only populated for
    columns whose declared type looks numeric.
    """

    table: str
    column: str
    type: str | None
    distinct_count: int = 0
    null_count: int = 0
    non_null_count: int = 0
    numeric: bool = False
    min_value: Any = None
    max_value: Any = None
    avg_value: float | None = None
    sample_values: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict = {
            "table_name": self.table,
            "column_name": self.column,
            "column_type": self.type,
            "distinct_count": self.distinct_count,
            "null_count": self.null_count,
            "non_null_count": self.non_null_count,
        }
        if self.numeric:
            result["min_value"] = self.min_value
            result["max_value"] = self.max_value
            result["avg_value"] = self.avg_value
        result["sample_values"] = list(self.sample_values)
        return result


@dataclass
class TableStatistics:
    table: str
    total_rows: int = 0
    column_count: int = 0
    columns: list[ColumnStatistics] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "table_name": self.table,
            "total_rows": self.total_rows,
            "column_count": self.column_count,
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass
class QueryResult:
    """Rows returned by a read-only query.

    Every row maps column name to a scalar value; binary values stay as
    ``bytes`` until a transport serialises them.
    """

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        return {
            "columns": list(self.columns),
            "rows": self.rows,
            "row_count": self.row_count,
        }


@dataclass
class SampleResult(QueryResult):
    table: str = ""
    limit: int = 10
    offset: int = 0

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(table_name=self.table, limit=self.limit, offset=self.offset)
        return result


@dataclass
class TableInfo:
    name: str
    kind: str
    row_count: int
    column_count: int
    sql: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.kind,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "sql": self.sql,
        }


@dataclass
class DatabaseInfo:
    path: str
    sqlite_version: str
    user_version: int
    application_id: int
    page_size: int
    page_count: int
    encoding: str
    freelist_count: int
    schema_version: int
    size_bytes: int | None = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "size_bytes": self.size_bytes,
            "sqlite_version": self.sqlite_version,
            "user_version": self.user_version,
            "application_id": self.application_id,
            "page_size": self.page_size,
            "page_count": self.page_count,
            "encoding": self.encoding,
            "freelist_count": self.freelist_count,
            "schema_version": self.schema_version,
        }


@dataclass
class ColumnMatch:
    table: str
    column: str
    type: str | None
    is_primary_key: bool
    is_nullable: bool

    def to_dict(self) -> dict:
        return {
            "table_name": self.table,
            "column_name": self.column,
            "column_type": self.type,
            "is_primary_key": self.is_primary_key,
            "is_nullable": self.is_nullable,
        }


@dataclass
class RelatedTables:
    """Foreign-key neighbourhood of one table.

    Attributes:
        table: The table the view is computed for.
        outgoing: Edges owned by ``table``.
        incoming: Edges owned by other tables that reference ``table``.
    """

    table: str
    outgoing: list[ForeignKeyEdge] = field(default_factory=list)
    incoming: list[ForeignKeyEdge] = field(default_factory=list)

    @property
    def references_tables(self) -> list[str]:
        return sorted({edge.referenced_table for edge in self.outgoing})

    @property
    def referenced_by_tables(self) -> list[str]:
        return sorted({edge.table for edge in self.incoming})

    def to_dict(self) -> dict:
        return {
            "table_name": self.table,
            "references_tables": self.references_tables,
            "referenced_by_tables": self.referenced_by_tables,
            "outgoing_foreign_keys": [e.to_dict() for e in self.outgoing],
            "incoming_foreign_keys": [e.to_dict() for e in self.incoming],
        }
