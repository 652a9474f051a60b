"""MCP command: read-only index server on stdio."""

from __future__ import annotations

import argparse

from memo.core.config.config import Config
from memo.mcp_server.stdio import StdioMCPServer
from memo.services.index_layout import HISTORY_FILE_NAME
from memo.utils.logging_setup import configure_logging


async def mcp_command(args: argparse.Namespace, config: Config) -> int:
    server = StdioMCPServer(config.memo_dir)
    configure_logging(
        config.log_level,
        history_path=config.memo_dir / HISTORY_FILE_NAME,
        mcp_mode=True,
    )
    await server.run()
    return 0
