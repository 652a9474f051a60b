"""MCP command argument parser for memo CLI."""

import argparse
from typing import Any, cast

from memo.core.config.config import Config


def add_mcp_subparser(subparsers: Any) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "mcp",
        help="Serve the index read-only over MCP (stdio)",
        description=(
            "Expose memo_list_keys and memo_get_value over the Model Context "
            "Protocol on stdin/stdout."
        ),
    )
    Config.add_cli_arguments(parser, pipeline=False)
    return cast(argparse.ArgumentParser, parser)


__all__: list[str] = ["add_mcp_subparser"]
