"""Async command implementations for memo CLI."""

from .mcp import mcp_command
from .scan import scan_command
from .watch import watch_command

__all__ = ["mcp_command", "scan_command", "watch_command"]
