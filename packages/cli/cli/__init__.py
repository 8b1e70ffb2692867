"""Command-line front ends: the read-only SQL shell and the stdio MCP server."""
