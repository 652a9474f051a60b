"""Change buffer - coalesces raw filesystem events into one net change per path.

# FILE_CONTEXT: Shared between the watchdog thread (add) and the asyncio loop (flush)
# CONCURRENCY: Every mutation happens inside one threading.Lock; the lock is
#   independent of the AnalysisGuard so events keep flowing during a cycle.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from memo.core.types.changes import ChangeKind, PendingChange

# Sentinel result of a merge: drop the entry entirely.
_REMOVE = None

# (old, new) -> merged kind, None removes the entry.
#   create + delete never existed observably
#   delete + create is observably a modification
_MERGE_TABLE: dict[tuple[ChangeKind, ChangeKind], ChangeKind | None] = {
    (ChangeKind.CREATE, ChangeKind.CREATE): ChangeKind.CREATE,
    (ChangeKind.CREATE, ChangeKind.MODIFY): ChangeKind.CREATE,
    (ChangeKind.CREATE, ChangeKind.DELETE): _REMOVE,
    (ChangeKind.MODIFY, ChangeKind.CREATE): ChangeKind.MODIFY,
    (ChangeKind.MODIFY, ChangeKind.MODIFY): ChangeKind.MODIFY,
    (ChangeKind.MODIFY, ChangeKind.DELETE): ChangeKind.DELETE,
    (ChangeKind.DELETE, ChangeKind.CREATE): ChangeKind.MODIFY,
    (ChangeKind.DELETE, ChangeKind.MODIFY): ChangeKind.DELETE,
    (ChangeKind.DELETE, ChangeKind.DELETE): ChangeKind.DELETE,
}


def merge_kinds(old: ChangeKind | None, new: ChangeKind) -> ChangeKind | None:
    """Merge an incoming change into an existing one.

    Returns the resulting kind, or None when the entry must be removed.
    """
    if old is None:
        return new
    return _MERGE_TABLE[(old, new)]


class ChangeBuffer:
    """Pending path -> ChangeKind mapping with atomic flush."""

    def __init__(self) -> None:
        self._pending: dict[str, ChangeKind] = {}
        self._lock = threading.Lock()
        # True once something was added since the last flush, even if a
        # later cancellation emptied the mapping again.
        self._armed = False

    def add(self, path: str, kind: ChangeKind) -> bool:
        """Merge one change into the buffer.

        Returns:
            True if this is the first change since the last flush, which is
            the caller's cue to (re)start the max-wait timer.
        """
        with self._lock:
            first = not self._armed
            self._armed = True
            merged = merge_kinds(self._pending.get(path), kind)
            if merged is _REMOVE:
                self._pending.pop(path, None)
            else:
                self._pending[path] = merged
            return first

    def flush(self) -> list[PendingChange]:
        """Atomically snapshot and clear the pending mapping.

        Callers must not rely on any ordering of the returned list.
        """
        with self._lock:
            snapshot = [PendingChange(p, k) for p, k in self._pending.items()]
            self._pending = {}
            self._armed = False
            return snapshot

    def restore(self, changes: Iterable[PendingChange]) -> int:
        """Put changes from an aborted cycle back underneath newer events.

        The restored kind is treated as the older event, so anything that
        arrived while the cycle ran still wins the merge.

        Returns:
            Number of paths pending after the restore.
        """
        with self._lock:
            for change in changes:
                newer = self._pending.pop(change.path, None)
                if newer is None:
                    self._pending[change.path] = change.kind
                    continue
                merged = merge_kinds(change.kind, newer)
                if merged is not _REMOVE:
                    self._pending[change.path] = merged
            return len(self._pending)

    def get(self, path: str) -> ChangeKind | None:
        with self._lock:
            return self._pending.get(path)

    def snapshot(self) -> dict[str, ChangeKind]:
        """Copy of the pending mapping without clearing it."""
        with self._lock:
            return dict(self._pending)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def is_empty(self) -> bool:
        return len(self) == 0
