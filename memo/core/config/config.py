"""Top-level configuration for memo.

Sources, lowest to highest precedence:
1. Defaults
2. JSON config file (--config, or <work_dir>/.memo.json when present)
3. Environment variables (MEMO_*)
4. CLI arguments
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from memo.core.exceptions import ConfigError
from memo.utils.ignore_engine import merge_gitignore
from memo.utils.logging_setup import LOG_LEVELS

from .agent_config import AgentConfig
from .index_config import IndexConfig
from .watch_config import WatchConfig

CONFIG_FILE_NAME = ".memo.json"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


class Config(BaseModel):
    work_dir: Path = Field(default_factory=Path.cwd)
    log_level: str = Field(default="info")
    agent: AgentConfig = Field(default_factory=AgentConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {list(LOG_LEVELS)}")
        return v

    @field_validator("work_dir")
    def resolve_work_dir(cls, v: Path) -> Path:
        return Path(v).expanduser().resolve()

    @property
    def memo_dir(self) -> Path:
        return self.index.memo_dir(self.work_dir)

    @property
    def index_dir(self) -> Path:
        return self.index.index_dir(self.work_dir)

    @classmethod
    def add_cli_arguments(
        cls, parser: argparse.ArgumentParser, pipeline: bool = True
    ) -> None:
        """Arguments shared by every subcommand.

        ``pipeline`` adds the agent, watch and index options that only the
        analysing commands use.
        """
        parser.add_argument(
            "path",
            nargs="?",
            type=Path,
            default=None,
            help="Working directory (default: current directory)",
        )
        parser.add_argument(
            "--config", "-c", type=Path, help="JSON configuration file"
        )
        parser.add_argument(
            "--log-level",
            choices=list(LOG_LEVELS),
            help="Console log level (default: info)",
        )
        if not pipeline:
            return
        AgentConfig.add_cli_arguments(parser)
        WatchConfig.add_cli_arguments(parser)
        IndexConfig.add_cli_arguments(parser)

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if level := os.getenv("MEMO_LOG_LEVEL"):
            config["log_level"] = level
        for key, section in (
            ("agent", AgentConfig),
            ("watch", WatchConfig),
            ("index", IndexConfig),
        ):
            values = section.load_from_env()
            if values:
                config[key] = values
        return config

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        if getattr(args, "log_level", None):
            overrides["log_level"] = args.log_level
        for key, section in (
            ("agent", AgentConfig),
            ("watch", WatchConfig),
            ("index", IndexConfig),
        ):
            values = section.extract_cli_overrides(args)
            if values:
                overrides[key] = values
        return overrides

    @staticmethod
    def _read_file(path: Path) -> dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        return data

    @classmethod
    def load(cls, args: Any | None = None, work_dir: Path | None = None) -> "Config":
        """Build the effective configuration.

        Raises:
            ConfigError: unreadable config file or invalid values
        """
        root = Path(
            work_dir
            or getattr(args, "path", None)
            or Path.cwd()
        ).expanduser().resolve()

        explicit = getattr(args, "config", None) if args is not None else None
        candidate = Path(explicit) if explicit else root / CONFIG_FILE_NAME

        data: dict[str, Any] = {}
        if explicit or candidate.is_file():
            data = cls._read_file(candidate)

        try:
            env = cls.load_from_env()
        except ValueError as e:
            raise ConfigError(f"Invalid MEMO_* environment variable: {e}") from e
        data = _deep_merge(data, env)
        if args is not None:
            data = _deep_merge(data, cls.extract_cli_overrides(args))
        data["work_dir"] = root

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        extra = getattr(args, "ignore", None) if args is not None else None
        if extra:
            for pattern in extra:
                if pattern and pattern not in config.watch.ignore_patterns:
                    config.watch.ignore_patterns.append(pattern)

        if config.watch.use_gitignore:
            config.watch.ignore_patterns = merge_gitignore(
                config.watch.ignore_patterns, config.work_dir
            )
        return config

    def __repr__(self) -> str:
        return (
            f"Config(work_dir={self.work_dir}, log_level={self.log_level}, "
            f"agent={self.agent!r}, index_dir={self.index_dir})"
        )
