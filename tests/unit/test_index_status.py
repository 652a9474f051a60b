from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from memo.services.index_layout import init_index
from memo.services.index_status import (
    IndexStatus,
    format_elapsed,
    read_status,
    status_path,
    write_status,
)


def test_missing_or_corrupt_status_reads_as_idle(tmp_path: Path):
    assert read_status(tmp_path).status == "idle"
    status_path(tmp_path).write_text("garbage")
    assert read_status(tmp_path).status == "idle"


def test_write_and_read_back(tmp_path: Path):
    written = write_status(tmp_path, "analyzing")
    assert written.analyzing
    assert written.since is not None

    loaded = read_status(tmp_path)
    assert loaded.analyzing
    assert loaded.elapsed_seconds() >= 0

    write_status(tmp_path, "idle")
    loaded = read_status(tmp_path)
    assert not loaded.analyzing
    assert loaded.since is None
    assert "since" not in status_path(tmp_path).read_text()
    # no temp files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["status.json"]


def test_elapsed_seconds():
    start = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    status = IndexStatus(status="analyzing", since=start)
    assert status.elapsed_seconds(start + timedelta(seconds=75)) == 75
    assert IndexStatus().elapsed_seconds() is None


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0s"), (45.9, "45s"), (60, "1m00s"), (192, "3m12s"), (3900, "1h05m")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


def test_init_index_never_overwrites(tmp_path: Path):
    memo_dir = tmp_path / ".memo"
    created = init_index(memo_dir)
    names = sorted(p.name for p in created)
    assert names == sorted(
        [".gitignore", "arch.json", "interface.json", "issues.json", "mcp.json", "stories.json"]
    )
    assert "watcher.lock" in (memo_dir / ".gitignore").read_text()

    (memo_dir / "index" / "arch.json").write_text('{"custom": true}')
    assert init_index(memo_dir) == []
    assert (memo_dir / "index" / "arch.json").read_text() == '{"custom": true}'
