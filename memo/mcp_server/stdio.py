"""Stdio MCP server exposing the memo index read-only.

CRITICAL: NO stdout output allowed - breaks JSON-RPC protocol. Logging goes
only to the ``.memo/.history`` sink configured by the CLI.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import mcp.server.stdio
import mcp.types as types
from loguru import logger
from mcp.server import Server
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions

from memo.core.exceptions import StartupError
from memo.version import __version__

from .tools import TOOL_REGISTRY, execute_tool

SERVER_NAME = "memo"


class StdioMCPServer:
    def __init__(self, memo_dir: Path) -> None:
        self.memo_dir = Path(memo_dir)
        if not (self.memo_dir / "index").is_dir():
            raise StartupError(
                f"index directory not found: {self.memo_dir / 'index'} (run `memo watch` or `memo scan` first)",
                self.memo_dir / "index",
            )
        self._log = logger.bind(component="mcp")
        self.server: Server = Server(SERVER_NAME)
        self._register_tools()

    def _register_tools(self) -> None:
        @self.server.call_tool()  # type: ignore[misc]
        async def handle_all_tools(
            tool_name: str, arguments: dict[str, Any]
        ) -> list[types.TextContent]:
            return self.call_tool(tool_name, arguments or {})

        @self.server.list_tools()  # type: ignore[misc]
        async def list_tools() -> list[types.Tool]:
            return [
                types.Tool(
                    name=tool.name,
                    description=tool.description,
                    inputSchema=tool.parameters,
                )
                for tool in TOOL_REGISTRY.values()
            ]

    def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        """Run one tool call; errors propagate and become isError results."""
        start = time.perf_counter()
        self._log.debug(f"request {tool_name} {arguments}")
        try:
            result = execute_tool(self.memo_dir, tool_name, arguments)
        except Exception as e:
            self._log.info(f"error {tool_name}: {e}")
            raise
        content = [types.TextContent(type="text", text=result["text"])]
        if "warning" in result:
            content.append(types.TextContent(type="text", text=f"Warning: {result['warning']}"))
        self._log.debug(
            f"response {tool_name} in {(time.perf_counter() - start) * 1000:.1f}ms"
        )
        return content

    async def run(self) -> None:
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version=__version__,
            capabilities=self.server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
        )
        self._log.info("MCP server started")
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await self.server.run(read_stream, write_stream, init_options)
        finally:
            self._log.info("MCP server stopped")
