"""loguru sink configuration for the watcher and the MCP server.

CRITICAL: in MCP mode nothing may reach stdout/stderr, the JSON-RPC stream
lives there. Only the history file sink stays active.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_LEVELS = ("error", "notice", "info", "debug")

_LEVEL_MAP = {
    "error": "ERROR",
    "notice": "WARNING",
    "info": "INFO",
    "debug": "DEBUG",
}

_STDERR_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | "
    "<cyan>{extra[component]}</cyan> - {message}"
)


def to_loguru_level(level: str) -> str:
    try:
        return _LEVEL_MAP[level.lower()]
    except KeyError:
        raise ValueError(
            f"Invalid log level: {level}. Must be one of {list(LOG_LEVELS)}"
        ) from None


def configure_logging(
    level: str = "info",
    history_path: Path | None = None,
    mcp_mode: bool = False,
) -> None:
    """Replace loguru's default sinks.

    Args:
        level: One of error, notice, info, debug
        history_path: Optional JSON-lines history file (e.g. .memo/.history)
        mcp_mode: Suppress every console sink
    """
    logger.remove()
    logger.configure(extra={"component": "memo"})

    if not mcp_mode:
        logger.add(
            sys.stderr,
            level=to_loguru_level(level),
            format=_STDERR_FORMAT,
            colorize=None,
        )

    if history_path is not None:
        try:
            history_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                history_path,
                level="DEBUG",
                serialize=True,
                enqueue=True,
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"History log disabled, cannot open {history_path}: {e}")
