"""Watch command: keep the index fresh until interrupted."""

from __future__ import annotations

import argparse
import asyncio
import signal

from loguru import logger

from memo.api.cli.commands.common import build_agent
from memo.api.cli.utils.banner import print_banner
from memo.core.config.config import Config
from memo.services.coordinator import Coordinator
from memo.services.index_layout import HISTORY_FILE_NAME
from memo.utils.logging_setup import configure_logging
from memo.version import __version__


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):  # pragma: no cover - windows
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))


async def watch_command(args: argparse.Namespace, config: Config) -> int:
    configure_logging(config.log_level, history_path=config.memo_dir / HISTORY_FILE_NAME)
    coordinator = Coordinator(config, build_agent(config))
    coordinator.prepare()
    try:
        print_banner(str(config.work_dir), __version__, coordinator.session_id)
        stop = asyncio.Event()
        _install_signal_handlers(stop)

        skip_scan = bool(getattr(args, "skip_scan", False))
        if skip_scan:
            logger.info("Skipping initial scan (--skip-scan)")
        logger.info(f"Memo watching: {config.work_dir}")
        await coordinator.watch(stop, initial_scan=not skip_scan)
        logger.info("Shutting down")
    finally:
        await coordinator.close()
    return 0
