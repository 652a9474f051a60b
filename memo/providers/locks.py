from __future__ import annotations

"""
Cross-platform exclusive lock on ``.memo/watcher.lock``.

One watcher per working directory. The lock is advisory (flock / msvcrt) so
the OS drops it when the process dies, and a stale file never blocks a new
watcher. Holder metadata is written into the file after acquisition for
diagnostics only; it is never used to decide ownership.
"""

import errno
import json
import os
import time
from pathlib import Path
from typing import Any, Optional

from memo.core.exceptions import IndexLockedError, StartupError

_IS_WINDOWS = os.name == "nt"
if not _IS_WINDOWS:
    import fcntl  # type: ignore
else:  # pragma: no cover - windows specific
    import msvcrt  # type: ignore

LOCK_FILE_NAME = "watcher.lock"


class IndexLock:
    def __init__(self, lock_path: str | Path) -> None:
        self._lock_path = Path(lock_path)
        self._fh: Optional[Any] = None

    @property
    def path(self) -> Path:
        return self._lock_path

    @property
    def held(self) -> bool:
        return self._fh is not None

    # Public API
    def acquire(self) -> None:
        """Take the lock or fail fast.

        Raises:
            IndexLockedError: another process holds the lock
            StartupError: the lock file cannot be created
        """
        if self._fh is not None:
            return
        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            fh = open(self._lock_path, "a+b", buffering=0)
            fh.close()
            fh = open(self._lock_path, "r+b", buffering=0)
        except OSError as e:
            raise StartupError(
                f"cannot create lock file {self._lock_path}: {e}", self._lock_path
            ) from e

        if not self._try_lock_exclusive(fh):
            holder = self.read_meta().get("pid")
            fh.close()
            suffix = f" (pid {holder})" if holder else ""
            raise IndexLockedError(
                f"another watcher is already running on this directory{suffix}; "
                f"lock: {self._lock_path}",
                self._lock_path,
            )
        self._fh = fh
        self._write_initial_meta()

    def release(self) -> None:
        if self._fh is None:
            return
        self._unlock_exclusive(self._fh)
        try:
            self._fh.close()
        except OSError:
            pass
        self._fh = None

    def __enter__(self) -> "IndexLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

    def read_meta(self) -> dict:
        try:
            if self._fh is not None:
                self._fh.seek(0)
                data_bytes = self._fh.read()
            else:
                with open(self._lock_path, "rb") as rfh:
                    data_bytes = rfh.read()
        except OSError:
            return {}
        data = data_bytes.decode("utf-8", errors="ignore").strip()
        if not data:
            return {}
        try:
            meta = json.loads(data)
        except json.JSONDecodeError:
            return {}
        return meta if isinstance(meta, dict) else {}

    # Internals
    def _write_initial_meta(self) -> None:
        meta = {
            "pid": os.getpid(),
            "host_id": self._host_id(),
            "start_ts": time.time(),
        }
        data = (json.dumps(meta, separators=(",", ":")) + "\n").encode("utf-8")
        assert self._fh is not None
        try:
            if _IS_WINDOWS:  # pragma: no cover - byte 0 is the locked region
                return
            self._fh.seek(0)
            self._fh.truncate(0)
            self._fh.write(data)
            self._fh.flush()
            os.fsync(self._fh.fileno())
        except OSError:
            pass

    def _try_lock_exclusive(self, fh) -> bool:
        if _IS_WINDOWS:  # pragma: no cover
            try:
                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
                return True
            except OSError:
                return False
        else:
            try:
                fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return True
            except OSError as e:
                if e.errno in (errno.EACCES, errno.EAGAIN):
                    return False
                raise

    def _unlock_exclusive(self, fh) -> None:
        if _IS_WINDOWS:  # pragma: no cover
            try:
                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
            except OSError:
                pass
        else:
            try:
                fcntl.flock(fh, fcntl.LOCK_UN)
            except OSError:
                pass

    def _host_id(self) -> str:
        try:
            return os.uname().nodename  # type: ignore[attr-defined]
        except AttributeError:
            return os.environ.get("COMPUTERNAME", "unknown-host")
