"""Scan command: one full analysis cycle, then exit."""

from __future__ import annotations

import argparse

from loguru import logger

from memo.api.cli.commands.common import build_agent
from memo.core.config.config import Config
from memo.services.coordinator import Coordinator
from memo.services.index_layout import HISTORY_FILE_NAME
from memo.utils.logging_setup import configure_logging


async def scan_command(args: argparse.Namespace, config: Config) -> int:
    configure_logging(config.log_level, history_path=config.memo_dir / HISTORY_FILE_NAME)
    coordinator = Coordinator(config, build_agent(config))
    coordinator.prepare()
    try:
        result = await coordinator.scan_once()
    finally:
        await coordinator.close()

    if result is None:
        return 0
    if not result.ok:
        logger.error(
            f"Scan failed after {result.completed_batches}/{result.batches} batch(es)"
        )
        return 1
    logger.info(f"Scan complete: {result.total_files} files in {result.batches} batch(es)")
    return 0
