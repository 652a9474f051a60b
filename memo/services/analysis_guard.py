"""Single-flight admission gate around one analysis cycle."""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger as _default_logger

T = TypeVar("T")


class AnalysisGuard:
    """Capacity-one, non-blocking gate.

    A flush attempt that finds the gate taken is skipped, not queued. The
    skip counter is only informational.
    """

    def __init__(self, logger: Any | None = None) -> None:
        self._slot = threading.Lock()
        self._skipped = 0
        self._log = logger or _default_logger.bind(component="analysis_guard")

    def try_acquire(self) -> bool:
        if self._slot.acquire(blocking=False):
            return True
        self._skipped += 1
        self._log.debug(f"Analysis already running, skipped trigger #{self._skipped}")
        return False

    def release(self) -> None:
        self._slot.release()

    @property
    def busy(self) -> bool:
        return self._slot.locked()

    @property
    def skipped(self) -> int:
        return self._skipped

    async def run_exclusive(
        self, cycle: Callable[[], Awaitable[T]]
    ) -> tuple[bool, T | None]:
        """Run ``cycle`` if the slot is free.

        Returns:
            (admitted, result). ``admitted`` is False when the slot was busy
            and the cycle was not started.
        """
        if not self.try_acquire():
            return False, None
        try:
            return True, await cycle()
        finally:
            self.release()
