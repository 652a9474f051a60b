from pathlib import Path

import pytest

from memo.core.config.config import Config
from memo.core.config.index_config import IndexConfig
from memo.core.config.watch_config import WatchConfig
from tests.fixtures.fake_agent import FakeAgent


@pytest.fixture(autouse=True)
def _clean_memo_env(monkeypatch):
    """Keep developer MEMO_* variables out of config tests."""
    import os

    for key in list(os.environ):
        if key.startswith("MEMO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Small source tree with a .git directory that must stay invisible."""
    (tmp_path / "src" / "pkg").mkdir(parents=True)
    (tmp_path / "src" / "pkg" / "a.py").write_text("print('a')\n")
    (tmp_path / "src" / "pkg" / "b.py").write_text("print('b')\n")
    (tmp_path / "README.md").write_text("# demo\n")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "ignored.txt").write_text("nope\n")
    return tmp_path


@pytest.fixture
def config(project: Path) -> Config:
    return Config(
        work_dir=project,
        watch=WatchConfig(debounce_ms=50, max_wait_ms=500),
        index=IndexConfig(max_attempts=3, batch_threshold=100),
    )


@pytest.fixture
def fake_agent() -> FakeAgent:
    return FakeAgent()
