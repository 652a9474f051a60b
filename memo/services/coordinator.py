"""Coordinator - wires watcher, buffer, guard and repair loop for one work dir.

# FILE_CONTEXT: Top-level service behind `memo watch` and `memo scan`
# OWNS: the index lock and the status file
# FAILURE POLICY:
#   SynthesisError           -> abort cycle, restore unprocessed changes
#   ValidationExhaustedError -> abort cycle, changes dropped, index left as-is
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger as _default_logger

from memo.core.config.config import Config
from memo.core.exceptions import SynthesisError, ValidationExhaustedError
from memo.core.types.changes import PendingChange
from memo.interfaces.agent_provider import AgentProvider
from memo.providers.locks import LOCK_FILE_NAME, IndexLock
from memo.services.analysis_guard import AnalysisGuard
from memo.services.batch_splitter import split_into_batches
from memo.services.change_buffer import ChangeBuffer
from memo.services.file_watcher import FileWatcher
from memo.services.index_layout import MCP_CONFIG_NAME, init_index
from memo.services.index_status import write_status
from memo.services.index_validator import IndexValidator
from memo.services.repair_loop import RepairLoop
from memo.services.synthesis_orchestrator import SynthesisOrchestrator
from memo.utils.ignore_engine import IgnoreMatcher


@dataclass
class CycleResult:
    total_files: int
    batches: int
    completed_batches: int = 0
    error: Exception | None = None
    restored: list[PendingChange] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class Coordinator:
    def __init__(
        self,
        config: Config,
        agent: AgentProvider,
        logger: Any | None = None,
        observer_factory: Any | None = None,
    ) -> None:
        self.config = config
        self._log = logger or _default_logger.bind(component="coordinator")
        work_dir = config.work_dir
        index_rel = f"{config.index.dir_name}/index"

        self.lock = IndexLock(config.memo_dir / LOCK_FILE_NAME)
        self.buffer = ChangeBuffer()
        self.guard = AnalysisGuard(logger=_default_logger.bind(component="analysis_guard"))
        # the agent writes into the index dir, watching it would loop forever
        patterns = list(config.watch.ignore_patterns)
        if config.index.dir_name not in patterns:
            patterns.append(config.index.dir_name)
        self.matcher = IgnoreMatcher(work_dir, patterns, config.watch.exclude_globs)
        self.validator = IndexValidator(config.index_dir)
        self.orchestrator = SynthesisOrchestrator(
            agent,
            work_dir,
            index_dir=index_rel,
            mcp_config=config.memo_dir / MCP_CONFIG_NAME,
            model=config.agent.model,
            line_timeout=config.agent.line_timeout_ms / 1000.0,
        )
        self.repair = RepairLoop(
            self.orchestrator,
            self.validator,
            max_attempts=config.index.max_attempts,
            index_dir=index_rel,
        )
        watcher_kwargs: dict[str, Any] = {}
        if observer_factory is not None:
            watcher_kwargs["observer_factory"] = observer_factory
        self.watcher = FileWatcher(
            work_dir,
            self.matcher,
            self.run_cycle,
            debounce=config.watch.debounce_seconds,
            max_wait=config.watch.max_wait_seconds,
            buffer=self.buffer,
            guard=self.guard,
            **watcher_kwargs,
        )
        self.last_result: CycleResult | None = None

    @property
    def session_id(self) -> str:
        return self.orchestrator.session_id

    def prepare(self) -> None:
        """Take the lock, then create the index skeleton and reset the status.

        Raises:
            StartupError: the index directory or lock cannot be obtained
        """
        self.lock.acquire()
        try:
            init_index(self.config.memo_dir)
        except BaseException:
            self.lock.release()
            raise
        self._set_status("idle")

    async def run_cycle(self, changes: list[PendingChange]) -> CycleResult:
        """Split ``changes`` into batches and drive each through the repair loop."""
        by_path = {c.path: c for c in changes}
        batches = split_into_batches(sorted(by_path), self.config.index.batch_threshold)
        result = CycleResult(total_files=len(by_path), batches=len(batches))
        self._log.info(
            f"Starting analysis for {len(by_path)} files in {len(batches)} batch(es)"
        )

        done: set[str] = set()
        self._set_status("analyzing")
        try:
            for i, batch in enumerate(batches, start=1):
                self._log.info(f"Processing batch {i}/{len(batches)} ({len(batch)} files)")
                await self.repair.run([by_path[p] for p in batch], i, len(batches))
                done.update(batch)
                result.completed_batches += 1
        except SynthesisError as e:
            result.error = e
            result.restored = [c for p, c in by_path.items() if p not in done]
            pending = self.buffer.restore(result.restored)
            self._log.error(
                f"Analysis aborted: {e}; {len(result.restored)} change(s) returned to the queue "
                f"({pending} pending)"
            )
        except ValidationExhaustedError as e:
            result.error = e
            self._log.error(
                f"Batch {result.completed_batches + 1}/{len(batches)} failed: {e}; "
                f"files: {', '.join(e.batch[:5])}{' ...' if len(e.batch) > 5 else ''}"
            )
        finally:
            self._set_status("idle")

        if result.ok:
            self._log.info(f"Analysis complete ({len(batches)} batch(es))")
        self.last_result = result
        return result

    async def scan_once(self) -> CycleResult | None:
        """Enqueue the whole tree and run exactly one cycle."""
        count = await self.watcher.scan_all(arm_timers=False)
        if count == 0:
            self._log.info("Nothing to analyze")
            return None
        await self.watcher.flush(trigger="scan")
        return self.last_result

    async def watch(self, stop: asyncio.Event, initial_scan: bool = True) -> None:
        """Watch until ``stop`` is set."""
        await self.watcher.start()
        try:
            if initial_scan:
                count = await self.watcher.scan_all()
                self._log.info(f"Initial scan queued {count} files")
            await stop.wait()
        finally:
            await self.watcher.stop()

    async def close(self) -> None:
        await self.orchestrator.close()
        if self.lock.held:
            self._set_status("idle")
            self.lock.release()

    def _set_status(self, status: str) -> None:
        try:
            write_status(self.config.memo_dir, status)  # type: ignore[arg-type]
        except OSError as e:
            self._log.error(f"Failed to write status {status!r}: {e}")
