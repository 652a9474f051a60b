"""Scan command argument parser for memo CLI."""

import argparse
from typing import Any, cast

from memo.core.config.config import Config


def add_scan_subparser(subparsers: Any) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "scan",
        help="Analyse the whole tree once and exit",
        description="Run a single full analysis cycle and exit with its status.",
    )
    Config.add_cli_arguments(parser)
    return cast(argparse.ArgumentParser, parser)


__all__: list[str] = ["add_scan_subparser"]
