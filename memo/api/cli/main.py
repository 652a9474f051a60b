"""memo command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from memo.api.cli.parsers import COMMANDS, create_main_parser
from memo.core.config.config import Config
from memo.core.exceptions import MemoError


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse arguments; without a subcommand ``watch`` is assumed."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = create_main_parser()
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "--version")):
        argv = ["watch", *argv]
    return parser.parse_args(argv)


async def async_main(args: argparse.Namespace) -> int:
    config = Config.load(args)
    if args.command == "scan":
        from memo.api.cli.commands.scan import scan_command

        return await scan_command(args, config)
    if args.command == "mcp":
        from memo.api.cli.commands.mcp import mcp_command

        return await mcp_command(args, config)

    from memo.api.cli.commands.watch import watch_command

    return await watch_command(args, config)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        code = asyncio.run(async_main(args))
    except MemoError as e:
        print(f"memo: {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = 130
    if argv is None:
        sys.exit(code)
    return code


if __name__ == "__main__":
    main()
