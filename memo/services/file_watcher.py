"""File watcher - turns filesystem notifications into flushed change batches.

# FILE_CONTEXT: Bridges watchdog's observer thread and the asyncio loop
# THREADS:
#   watchdog thread - filter, classify, ChangeBuffer.add()
#   asyncio loop    - timers, directory (un)subscription, flush + on_batch
# TIMERS: debounce restarts on every accepted event; max-wait starts with the
#   first pending change. Either one firing attempts a flush through the
#   AnalysisGuard. A skipped attempt leaves the changes pending; after the
#   running cycle the debounce timer is re-armed so they are re-offered.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from loguru import logger as _default_logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from memo.core.types.changes import ChangeKind, PendingChange, classify_event
from memo.services.analysis_guard import AnalysisGuard
from memo.services.change_buffer import ChangeBuffer
from memo.utils.ignore_engine import IgnoreMatcher

BatchCallback = Callable[[list[PendingChange]], Awaitable[Any]]


def _to_str(path: str | bytes) -> str:
    return os.fsdecode(path)


class _WatchdogHandler(FileSystemEventHandler):
    """Runs on the observer thread; never touches the loop directly."""

    def __init__(self, watcher: "FileWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            self._watcher._handle_event(event)
        except Exception as e:
            self._watcher._log.warning(f"Failed to handle {event.event_type} event for {event.src_path}: {e}")


class FileWatcher:
    def __init__(
        self,
        root: Path,
        matcher: IgnoreMatcher,
        on_batch: BatchCallback,
        debounce: float = 5.0,
        max_wait: float = 300.0,
        buffer: ChangeBuffer | None = None,
        guard: AnalysisGuard | None = None,
        logger: Any | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.root = Path(root).resolve()
        self.matcher = matcher
        self.buffer = buffer if buffer is not None else ChangeBuffer()
        self.guard = guard if guard is not None else AnalysisGuard()
        self._on_batch = on_batch
        self._debounce = debounce
        self._max_wait = max_wait
        self._log = logger or _default_logger.bind(component="watcher")
        self._observer_factory = observer_factory

        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Any | None = None
        self._handler = _WatchdogHandler(self)
        self._watches: dict[Path, Any] = {}
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._max_wait_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._stopped = False

    # Lifecycle
    async def start(self) -> None:
        """Subscribe to every non-ignored directory and start the observer."""
        self._loop = asyncio.get_running_loop()
        self._stopped = False
        self._observer = self._observer_factory()
        dirs = await asyncio.to_thread(lambda: list(self.matcher.iter_dirs()))
        for d in dirs:
            self._schedule_dir(d)
        self._observer.start()
        self._log.info(f"Watching {len(self._watches)} directories under {self.root}")

    async def stop(self) -> None:
        """Stop the observer, cancel timers and any in-flight cycle."""
        self._stopped = True
        self._cancel_timers()
        if self._observer is not None:
            self._observer.stop()
            try:
                await asyncio.wait_for(asyncio.to_thread(self._observer.join), timeout=2.0)
            except asyncio.TimeoutError:
                self._log.warning("Observer thread did not exit within timeout")
            self._observer = None
        self._watches.clear()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def watched_dirs(self) -> list[Path]:
        return sorted(self._watches)

    # Subscription (loop thread)
    def _schedule_dir(self, path: Path) -> None:
        if self._observer is None or path in self._watches:
            return
        try:
            self._watches[path] = self._observer.schedule(self._handler, str(path), recursive=False)
        except (OSError, RuntimeError) as e:
            self._log.warning(f"Cannot watch {path}: {e}")

    def _unschedule_tree(self, path: Path) -> None:
        for watched in list(self._watches):
            if watched == path or path in watched.parents:
                watch = self._watches.pop(watched)
                try:
                    if self._observer is not None:
                        self._observer.unschedule(watch)
                except (KeyError, OSError, RuntimeError) as e:
                    self._log.debug(f"Unschedule {watched} failed: {e}")

    def _on_dir_created(self, path: Path) -> None:
        """Subscribe a new subtree and enqueue the files already inside it.

        Files written between mkdir and the watch registration produce no
        event of their own, so they are picked up by walking the subtree.
        """
        if self._stopped:
            return
        for d in self.matcher.iter_dirs(path):
            self._schedule_dir(d)
        count = 0
        for d in self.matcher.iter_dirs(path):
            try:
                entries = sorted(os.scandir(d), key=lambda e: e.name)
            except OSError as e:
                self._log.debug(f"Cannot list new directory {d}: {e}")
                continue
            for entry in entries:
                try:
                    is_file = entry.is_file(follow_symlinks=False)
                except OSError:
                    continue
                if is_file and not self.matcher.is_ignored(entry.path):
                    self._enqueue(entry.path, ChangeKind.CREATE)
                    count += 1
        self._log.debug(f"Watching new directory {path} ({count} existing files queued)")

    # Event intake (observer thread)
    def _handle_event(self, event: FileSystemEvent) -> None:
        if self._stopped:
            return
        etype = event.event_type
        src = _to_str(event.src_path)

        if etype == "moved":
            dest = _to_str(getattr(event, "dest_path", "") or "")
            self._path_event(src, "deleted", event.is_directory)
            if dest:
                self._path_event(dest, "created", event.is_directory)
            return
        self._path_event(src, etype, event.is_directory)

    def _path_event(self, path: str, etype: str, is_directory: bool) -> None:
        if self.matcher.is_ignored(path, is_dir=is_directory):
            return

        if is_directory:
            if etype == "created":
                self._call_soon(self._on_dir_created, Path(path))
            elif etype == "deleted":
                self._call_soon(self._unschedule_tree, Path(path))
                self._enqueue(path, ChangeKind.DELETE)
            return

        kind = classify_event(etype, path)
        if kind is None:
            return
        self._log.debug(f"Event: {etype} {path}")
        self._enqueue(path, kind)

    def _enqueue(self, path: str | Path, kind: ChangeKind) -> None:
        rel = self.matcher.relative(path)
        first = self.buffer.add(rel, kind)
        self._call_soon(self._arm_timers, first)

    def _call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        if _running_in(loop):
            callback(*args)
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError as e:
            # loop closed between the check and the call
            self._log.debug(f"Dropping callback after loop shutdown: {e}")

    # Timers (loop thread)
    def _arm_timers(self, first: bool = False) -> None:
        if self._stopped or self._loop is None:
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self._loop.call_later(self._debounce, self._on_timer, "debounce")
        if first or self._max_wait_handle is None:
            if self._max_wait_handle is not None:
                self._max_wait_handle.cancel()
            self._max_wait_handle = self._loop.call_later(self._max_wait, self._on_timer, "max-wait")

    def _cancel_timers(self) -> None:
        for handle in (self._debounce_handle, self._max_wait_handle):
            if handle is not None:
                handle.cancel()
        self._debounce_handle = None
        self._max_wait_handle = None

    def _on_timer(self, source: str) -> None:
        if source == "debounce":
            self._debounce_handle = None
        else:
            self._max_wait_handle = None
        self._spawn(self.flush(trigger=source))

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error(f"Analysis cycle crashed: {exc!r}")

    # Flush
    async def flush(self, trigger: str = "manual") -> bool:
        """Flush pending changes into one ``on_batch`` call.

        Returns:
            False if a cycle was already running and this attempt was skipped.
        """
        # run_exclusive checks the guard before its first await
        admitted, _ = await self.guard.run_exclusive(lambda: self._dispatch(trigger))
        if not admitted:
            self._log.debug(f"Analysis in progress, {trigger} flush skipped (changes stay pending)")
            return False

        if not self._stopped and not self.buffer.is_empty():
            self._arm_timers()
        return True

    async def _dispatch(self, trigger: str) -> None:
        self._cancel_timers()
        changes = self.buffer.flush()
        if changes:
            self._log.info(f"Flushing {len(changes)} change(s) ({trigger})")
            await self._on_batch(changes)

    # Full scan
    async def scan_all(self, arm_timers: bool = True) -> int:
        """Enqueue every non-ignored file as a synthetic Create.

        Returns:
            Number of files enqueued
        """
        files = await asyncio.to_thread(lambda: list(self.matcher.iter_files()))
        first = False
        for path in files:
            first = self.buffer.add(self.matcher.relative(path), ChangeKind.CREATE) or first
        self._log.debug(f"ScanAll: added {len(files)} files to pending")
        if files and arm_timers and self._loop is not None:
            self._arm_timers(first)
        return len(files)


def _running_in(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
