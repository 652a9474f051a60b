import os
import sys
from pathlib import Path

import pytest

from memo.core.exceptions import IndexLockedError, StartupError
from memo.providers.locks import IndexLock


def test_second_watcher_is_rejected(tmp_path: Path):
    path = tmp_path / ".memo" / "watcher.lock"
    first = IndexLock(path)
    first.acquire()
    try:
        assert first.held
        second = IndexLock(path)
        with pytest.raises(IndexLockedError) as exc:
            second.acquire()
        assert "another watcher is already running" in str(exc.value)
        assert str(path) in str(exc.value)
        assert not second.held
    finally:
        first.release()

    # released lock can be taken again
    with IndexLock(path) as again:
        assert again.held
    assert not again.held


@pytest.mark.skipif(sys.platform.startswith("win"), reason="metadata not written on Windows")
def test_holder_metadata(tmp_path: Path):
    lock = IndexLock(tmp_path / "watcher.lock")
    lock.acquire()
    try:
        meta = lock.read_meta()
        assert meta["pid"] == os.getpid()
        assert "start_ts" in meta
    finally:
        lock.release()


def test_stale_lock_file_does_not_block(tmp_path: Path):
    path = tmp_path / "watcher.lock"
    path.write_text('{"pid": 999999}\n')
    lock = IndexLock(path)
    lock.acquire()
    assert lock.held
    lock.release()
    lock.release()  # idempotent


@pytest.mark.skipif(
    sys.platform.startswith("win") or os.geteuid() == 0,
    reason="permission bits are not enforced",
)
def test_unwritable_directory_is_a_startup_error(tmp_path: Path):
    ro = tmp_path / "ro"
    ro.mkdir()
    ro.chmod(0o500)
    try:
        with pytest.raises(StartupError):
            IndexLock(ro / "sub" / "watcher.lock").acquire()
    finally:
        ro.chmod(0o700)
