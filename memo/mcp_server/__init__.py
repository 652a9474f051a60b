"""Read-only MCP server over the memo index."""
