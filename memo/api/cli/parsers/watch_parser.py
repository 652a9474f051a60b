"""Watch command argument parser for memo CLI."""

import argparse
from typing import Any, cast

from memo.core.config.config import Config


def add_watch_subparser(subparsers: Any) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "watch",
        help="Watch a directory and keep its index up to date (default)",
        description=(
            "Watch the working directory, coalesce changes and let the agent "
            "update .memo/index after each quiet period."
        ),
    )
    Config.add_cli_arguments(parser)
    parser.add_argument(
        "--skip-scan",
        action="store_true",
        help="Do not analyse the whole tree on startup",
    )
    return cast(argparse.ArgumentParser, parser)


__all__: list[str] = ["add_watch_subparser"]
