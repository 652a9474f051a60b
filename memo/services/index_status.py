"""Analysis status file (``.memo/status.json``).

Written by the watcher before and after every cycle and read without any
locking by the query server, so writes go through a temp file and
``os.replace``. Anything unreadable counts as idle.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

STATUS_FILE_NAME = "status.json"

StatusValue = Literal["idle", "analyzing"]


class IndexStatus(BaseModel):
    status: StatusValue = "idle"
    since: datetime | None = None

    @property
    def analyzing(self) -> bool:
        return self.status == "analyzing"

    def elapsed_seconds(self, now: datetime | None = None) -> float | None:
        if self.since is None:
            return None
        now = now or datetime.now(timezone.utc)
        since = self.since if self.since.tzinfo else self.since.replace(tzinfo=timezone.utc)
        return max(0.0, (now - since).total_seconds())


def status_path(memo_dir: Path) -> Path:
    return Path(memo_dir) / STATUS_FILE_NAME


def write_status(memo_dir: Path, status: StatusValue) -> IndexStatus:
    """Atomically replace the status file."""
    value = IndexStatus(
        status=status,
        since=datetime.now(timezone.utc) if status == "analyzing" else None,
    )
    target = status_path(memo_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".status-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(value.model_dump_json(exclude_none=True))
        os.replace(tmp, target)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    return value


def read_status(memo_dir: Path) -> IndexStatus:
    try:
        data = json.loads(status_path(memo_dir).read_text(encoding="utf-8"))
        return IndexStatus.model_validate(data)
    except (OSError, ValueError, ValidationError):
        return IndexStatus()


def format_elapsed(seconds: float) -> str:
    """Human duration like ``45s``, ``3m12s`` or ``1h05m``."""
    total = int(seconds)
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m{secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m"
