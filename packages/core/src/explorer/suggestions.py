"""SQL query templates built from a table's schema."""

from cipherdb.errors import InvalidParameter
from cipherdb.identifiers import quote_catalog_identifier
from cipherdb.models import ColumnDescriptor, ForeignKeyEdge
from cipherdb.StatisticsAggregator import is_numeric_type

INTENTS = ("count", "sample", "aggregate", "join", "search")
DEFAULT_INTENT = "sample"

_TEXT_TYPE_MARKERS = ("TEXT", "CHAR", "CLOB")


def _is_text_type(declared_type: str | None) -> bool:
    if not declared_type:
        return True
    upper = declared_type.upper()
    return any(marker in upper for marker in _TEXT_TYPE_MARKERS)


def build_query_templates(
    table: str,
    columns: list[ColumnDescriptor],
    foreign_keys: list[ForeignKeyEdge],
    intent: str | None = None,
) -> list[dict]:
    """Return ``{"description", "query"}`` templates for one intent.

    Templates contain placeholders (``condition``, ``search_term``) for the
    caller to fill in. An intent the schema cannot support, such as
    ``join`` on a table without foreign keys, yields an empty list.

    Raises:
        InvalidParameter: If ``intent`` is not one of :data:`INTENTS`.
    """
    intent = intent or DEFAULT_INTENT
    if intent not in INTENTS:
        raise InvalidParameter(
            "intent", f"intent must be one of: {', '.join(INTENTS)}"
        )

    table_sql = quote_catalog_identifier(table)
    projection = ", ".join(quote_catalog_identifier(c.name) for c in columns) or "*"
    templates: list[dict] = []

    if intent == "count":
        templates.append(
            {"description": "Count all rows", "query": f"SELECT COUNT(*) AS total FROM {table_sql}"}
        )
        grouped = next((c for c in columns if not c.primary_key), None)
        if grouped is not None:
            column_sql = quote_catalog_identifier(grouped.name)
            templates.append(
                {
                    "description": f"Count rows per {grouped.name}",
                    "query": (
                        f"SELECT {column_sql}, COUNT(*) AS count FROM {table_sql} "
                        f"GROUP BY {column_sql} ORDER BY count DESC"
                    ),
                }
            )

    elif intent == "sample":
        templates.append(
            {"description": "Get first 10 rows", "query": f"SELECT {projection} FROM {table_sql} LIMIT 10"}
        )
        templates.append(
            {
                "description": "Get rows matching a condition",
                "query": f"SELECT {projection} FROM {table_sql} WHERE condition LIMIT 10",
            }
        )

    elif intent == "aggregate":
        numeric = [c for c in columns if is_numeric_type(c.type)]
        # Prefer a measure over the key column.
        preferred = [c for c in numeric if not c.primary_key] or numeric
        if preferred:
            column = preferred[0]
            col = quote_catalog_identifier(column.name)
            templates.append(
                {
                    "description": f"Summary statistics for {column.name}",
                    "query": (
                        f"SELECT MIN({col}) AS min_value, MAX({col}) AS max_value, "
                        f"AVG({col}) AS avg_value, SUM({col}) AS total FROM {table_sql}"
                    ),
                }
            )

    elif intent == "join":
        for edge in foreign_keys:
            other = quote_catalog_identifier(edge.referenced_table)
            to_column = quote_catalog_identifier(edge.to_column or "rowid")
            templates.append(
                {
                    "description": f"Join with {edge.referenced_table} on {edge.from_column}",
                    "query": (
                        f"SELECT t1.*, t2.* FROM {table_sql} t1 JOIN {other} t2 "
                        f"ON t1.{quote_catalog_identifier(edge.from_column)} = t2.{to_column} "
                        "LIMIT 10"
                    ),
                }
            )

    elif intent == "search":
        text_columns = [c for c in columns if _is_text_type(c.type)]
        if text_columns:
            col = quote_catalog_identifier(text_columns[0].name)
            templates.append(
                {
                    "description": f"Search {text_columns[0].name} by text",
                    "query": (
                        f"SELECT {projection} FROM {table_sql} "
                        f"WHERE {col} LIKE '%search_term%' LIMIT 10"
                    ),
                }
            )

    return templates
