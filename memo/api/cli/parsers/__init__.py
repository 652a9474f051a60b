"""Argument parsers for memo subcommands."""

import argparse

from memo.version import __version__

from .mcp_parser import add_mcp_subparser
from .scan_parser import add_scan_subparser
from .watch_parser import add_watch_subparser

COMMANDS = ("watch", "scan", "mcp")


def create_main_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memo",
        description="Keep an agent-maintained knowledge index of a codebase fresh.",
    )
    parser.add_argument("--version", action="version", version=f"memo {__version__}")
    subparsers = parser.add_subparsers(dest="command")
    add_watch_subparser(subparsers)
    add_scan_subparser(subparsers)
    add_mcp_subparser(subparsers)
    return parser


__all__ = [
    "COMMANDS",
    "add_mcp_subparser",
    "add_scan_subparser",
    "add_watch_subparser",
    "create_main_parser",
]
