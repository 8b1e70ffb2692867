"""Tests for the stdio tool server registration."""

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from cli.mcp_server import create_server
from explorer.tools import TOOL_NAMES


@pytest.mark.asyncio
async def test_every_operation_is_registered(config):
    mcp = create_server(config)

    tools = await mcp.list_tools()

    assert sorted(tool.name for tool in tools) == sorted(TOOL_NAMES)


@pytest.mark.asyncio
async def test_tool_parameters_include_database_path(config):
    tools = {tool.name: tool for tool in await create_server(config).list_tools()}

    schema = tools["sample_table_data"].inputSchema
    assert {"table_name", "limit", "offset", "columns", "database_path"} <= set(schema["properties"])
    assert schema["required"] == ["table_name"]


@pytest.mark.asyncio
async def test_prompts_are_registered(config):
    prompts = await create_server(config).list_prompts()

    assert sorted(p.name for p in prompts) == [
        "describe_table_structure",
        "explore_database_schema",
        "find_data_relationships",
        "generate_query_template",
    ]


@pytest.mark.asyncio
async def test_failed_operation_raises_tool_error(config):
    mcp = create_server(config)

    with pytest.raises(ToolError) as exc_info:
        await mcp.call_tool("list_columns", {"table_name": "nope"})

    assert "TableNotFound" in str(exc_info.value)
