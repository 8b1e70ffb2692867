"""stdio MCP server exposing every catalog operation as a tool."""

from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from explorer import SERVER_NAME
from explorer import prompts
from explorer.config import ExplorerConfig
from explorer.ExplorerService import ExplorerService
from explorer.log_setup import configure_logging
from explorer.tools import get_tool

logger = structlog.get_logger(__name__)


def _arguments(**values: Any) -> dict[str, Any]:
    """Drop parameters the client did not send."""
    return {key: value for key, value in values.items() if value is not None}


def create_server(config: ExplorerConfig) -> FastMCP:
    """Build a FastMCP server bound to one configuration."""
    service = ExplorerService(config)
    mcp = FastMCP(SERVER_NAME)

    async def run(name: str, **values: Any) -> dict:
        result = await service.call_tool(name, _arguments(**values))
        payload = result.to_dict()
        if not result.success:
            raise ToolError(f"{payload['error_kind']}: {payload['error']}")
        return {"data": payload["data"], "message": payload["message"]}

    def describe(name: str) -> str:
        return get_tool(name)["description"]

    # --- Queries -----------------------------------------------------------

    @mcp.tool(description=describe("execute_query"))
    async def execute_query(query: str, database_path: str | None = None) -> dict:
        return await run("execute_query", query=query, database_path=database_path)

    @mcp.tool(description=describe("explain_query"))
    async def explain_query(query: str, database_path: str | None = None) -> dict:
        return await run("explain_query", query=query, database_path=database_path)

    @mcp.tool(description=describe("validate_query_syntax"))
    async def validate_query_syntax(query: str, database_path: str | None = None) -> dict:
        return await run("validate_query_syntax", query=query, database_path=database_path)

    @mcp.tool(description=describe("suggest_query"))
    async def suggest_query(
        table_name: str, intent: str | None = None, database_path: str | None = None
    ) -> dict:
        return await run(
            "suggest_query", table_name=table_name, intent=intent, database_path=database_path
        )

    # --- Schema ------------------------------------------------------------

    @mcp.tool(description=describe("list_tables"))
    async def list_tables(
        table_names: list[str] | None = None, database_path: str | None = None
    ) -> dict:
        return await run("list_tables", table_names=table_names, database_path=database_path)

    @mcp.tool(description=describe("get_table_schema"))
    async def get_table_schema(
        table_name: str | list[str], database_path: str | None = None
    ) -> dict:
        return await run("get_table_schema", table_name=table_name, database_path=database_path)

    @mcp.tool(description=describe("list_columns"))
    async def list_columns(table_name: str, database_path: str | None = None) -> dict:
        return await run("list_columns", table_name=table_name, database_path=database_path)

    @mcp.tool(description=describe("get_foreign_keys"))
    async def get_foreign_keys(
        table_name: str | None = None, database_path: str | None = None
    ) -> dict:
        return await run("get_foreign_keys", table_name=table_name, database_path=database_path)

    @mcp.tool(description=describe("get_indexes"))
    async def get_indexes(
        table_name: str | None = None, database_path: str | None = None
    ) -> dict:
        return await run("get_indexes", table_name=table_name, database_path=database_path)

    @mcp.tool(description=describe("get_database_info"))
    async def get_database_info(database_path: str | None = None) -> dict:
        return await run("get_database_info", database_path=database_path)

    @mcp.tool(description=describe("get_table_info"))
    async def get_table_info(table_name: str, database_path: str | None = None) -> dict:
        return await run("get_table_info", table_name=table_name, database_path=database_path)

    @mcp.tool(description=describe("test_connection"))
    async def test_connection(database_path: str | None = None) -> dict:
        return await run("test_connection", database_path=database_path)

    # --- Statistics and samples --------------------------------------------

    @mcp.tool(description=describe("get_table_statistics"))
    async def get_table_statistics(
        table_name: str,
        max_sample_size: int | None = None,
        timeout_ms: int | None = None,
        database_path: str | None = None,
    ) -> dict:
        return await run(
            "get_table_statistics",
            table_name=table_name,
            max_sample_size=max_sample_size,
            timeout_ms=timeout_ms,
            database_path=database_path,
        )

    @mcp.tool(description=describe("sample_table_data"))
    async def sample_table_data(
        table_name: str,
        limit: int | None = None,
        offset: int | None = None,
        columns: list[str] | None = None,
        database_path: str | None = None,
    ) -> dict:
        return await run(
            "sample_table_data",
            table_name=table_name,
            limit=limit,
            offset=offset,
            columns=columns,
            database_path=database_path,
        )

    @mcp.tool(description=describe("get_column_statistics"))
    async def get_column_statistics(
        table_name: str,
        column_name: str | list[str],
        max_sample_size: int | None = None,
        database_path: str | None = None,
    ) -> dict:
        return await run(
            "get_column_statistics",
            table_name=table_name,
            column_name=column_name,
            max_sample_size=max_sample_size,
            database_path=database_path,
        )

    # --- Search and relationships ------------------------------------------

    @mcp.tool(description=describe("search_tables"))
    async def search_tables(pattern: str, database_path: str | None = None) -> dict:
        return await run("search_tables", pattern=pattern, database_path=database_path)

    @mcp.tool(description=describe("search_columns"))
    async def search_columns(pattern: str, database_path: str | None = None) -> dict:
        return await run("search_columns", pattern=pattern, database_path=database_path)

    @mcp.tool(description=describe("find_related_tables"))
    async def find_related_tables(table_name: str, database_path: str | None = None) -> dict:
        return await run("find_related_tables", table_name=table_name, database_path=database_path)

    # --- Prompts -----------------------------------------------------------

    @mcp.prompt(description="Overview of the tables in the database")
    async def explore_database_schema(database_path: str | None = None) -> str:
        return await prompts.explore_database_schema(service, database_path)

    @mcp.prompt(description="Columns, keys, indexes and sample rows of a table")
    async def describe_table_structure(table_name: str, database_path: str | None = None) -> str:
        return await prompts.describe_table_structure(service, table_name, database_path)

    @mcp.prompt(description="Foreign key relationships of a table or the whole database")
    async def find_data_relationships(
        table_name: str | None = None, database_path: str | None = None
    ) -> str:
        return await prompts.find_data_relationships(service, table_name, database_path)

    @mcp.prompt(description="SQL templates for a table (count, sample, aggregate, join, search)")
    async def generate_query_template(
        table_name: str, intent: str | None = None, database_path: str | None = None
    ) -> str:
        return await prompts.generate_query_template(service, table_name, intent, database_path)

    return mcp


def main() -> None:
    """Run the MCP server over stdio using environment configuration."""
    config = ExplorerConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    for notice in config.warnings():
        logger.warning("configuration_notice", notice=notice)

    logger.info("mcp_server_starting", name=SERVER_NAME, database_path=config.database_path)
    create_server(config).run(transport="stdio")


if __name__ == "__main__":
    main()
