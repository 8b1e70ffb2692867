"""Foreign-key neighbourhood of a table."""

import aiosqlite

from cipherdb.models import RelatedTables
from cipherdb.SchemaInspector import SchemaInspector


class RelationshipResolver:
    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._inspector = SchemaInspector(connection)

    async def related_tables(self, table_name: object) -> RelatedTables:
        """Return the edges leaving ``table_name`` and the edges pointing at it.

        Incoming edges need a scan of every table's foreign keys, since the
        catalog only stores an edge on the table that owns it.

        Raises:
            TableNotFound: If the table is not in the catalog.
        """
        table = await self._inspector.require_table(table_name)
        outgoing = await self._inspector.get_foreign_keys(table.name)
        every_edge = await self._inspector.get_foreign_keys()

        incoming = [
            edge
            for edge in every_edge
            if edge.referenced_table.lower() == table.name.lower()
        ]
        return RelatedTables(table=table.name, outgoing=outgoing, incoming=incoming)
