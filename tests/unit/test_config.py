import argparse
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from memo.core.config.config import Config
from memo.core.config.watch_config import DEFAULT_IGNORE_PATTERNS, WatchConfig
from memo.core.exceptions import ConfigError


def _parse(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    Config.add_cli_arguments(parser)
    return parser.parse_args(argv)


def test_defaults(tmp_path: Path):
    cfg = Config.load(work_dir=tmp_path)
    assert cfg.work_dir == tmp_path.resolve()
    assert cfg.log_level == "info"
    assert cfg.watch.debounce_ms == 5000
    assert cfg.watch.max_wait_ms == 300000
    assert cfg.index.max_attempts == 5
    assert cfg.index.batch_threshold == 100
    assert cfg.agent.binary == "claude"
    assert cfg.memo_dir == tmp_path.resolve() / ".memo"
    assert cfg.index_dir == tmp_path.resolve() / ".memo" / "index"
    for pattern in DEFAULT_IGNORE_PATTERNS:
        assert pattern in cfg.watch.ignore_patterns


def test_file_env_cli_precedence(tmp_path: Path, monkeypatch):
    (tmp_path / ".memo.json").write_text(
        json.dumps({"watch": {"debounce_ms": 100, "max_wait_ms": 1000}, "log_level": "debug"})
    )
    monkeypatch.setenv("MEMO_WATCH__DEBOUNCE_MS", "200")
    monkeypatch.setenv("MEMO_INDEX__MAX_ATTEMPTS", "7")

    args = _parse([str(tmp_path), "--max-attempts", "2"])
    cfg = Config.load(args)

    assert cfg.watch.debounce_ms == 200  # env over file
    assert cfg.watch.max_wait_ms == 1000  # file over default
    assert cfg.log_level == "debug"
    assert cfg.index.max_attempts == 2  # cli over env


def test_explicit_config_file_and_extra_ignores(tmp_path: Path):
    cfg_file = tmp_path / "custom.json"
    cfg_file.write_text(json.dumps({"agent": {"model": "sonnet"}}))
    args = _parse([str(tmp_path), "-c", str(cfg_file), "--ignore", "vendor", "--ignore", "*.tmp"])
    cfg = Config.load(args)
    assert cfg.agent.model == "sonnet"
    assert "vendor" in cfg.watch.ignore_patterns
    assert "*.tmp" in cfg.watch.ignore_patterns


def test_gitignore_merge_can_be_disabled(tmp_path: Path):
    (tmp_path / ".gitignore").write_text("dist/\n")
    assert "dist" in Config.load(work_dir=tmp_path).watch.ignore_patterns
    args = _parse([str(tmp_path), "--no-gitignore"])
    assert "dist" not in Config.load(args).watch.ignore_patterns


def test_invalid_json_file_raises_config_error(tmp_path: Path):
    (tmp_path / ".memo.json").write_text("{not json")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        Config.load(work_dir=tmp_path)


def test_missing_explicit_file_raises_config_error(tmp_path: Path):
    args = _parse([str(tmp_path), "--config", str(tmp_path / "nope.json")])
    with pytest.raises(ConfigError, match="Cannot read"):
        Config.load(args)


def test_invalid_values_raise_config_error(tmp_path: Path, monkeypatch):
    args = _parse([str(tmp_path), "--max-attempts", "0"])
    with pytest.raises(ConfigError):
        Config.load(args)

    monkeypatch.setenv("MEMO_WATCH__DEBOUNCE_MS", "soon")
    with pytest.raises(ConfigError, match="environment"):
        Config.load(work_dir=tmp_path)


def test_max_wait_must_cover_debounce():
    with pytest.raises(ValidationError):
        WatchConfig(debounce_ms=1000, max_wait_ms=500)
    cfg = WatchConfig(debounce_ms=250, max_wait_ms=250)
    assert cfg.debounce_seconds == 0.25
    assert cfg.max_wait_seconds == 0.25


def test_api_key_is_not_leaked_in_repr(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MEMO_AGENT__API_KEY", "sk-very-secret-value")
    cfg = Config.load(work_dir=tmp_path)
    assert cfg.agent.api_key_value() == "sk-very-secret-value"
    assert "sk-very-secret-value" not in repr(cfg)
