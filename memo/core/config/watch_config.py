"""Watcher configuration for memo."""

import argparse
import os
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_IGNORE_PATTERNS = [".git", "node_modules", ".memo", "*.log"]


class WatchConfig(BaseModel):
    """Filesystem watching and debounce settings.

    Both timers are in milliseconds. The debounce timer restarts on every
    accepted event; the max-wait timer starts with the first pending change
    and bounds latency under continuous churn.
    """

    debounce_ms: int = Field(default=5000, ge=1, description="Quiet period before analysis")
    max_wait_ms: int = Field(
        default=300000, ge=1, description="Upper bound on delay since the first change"
    )
    ignore_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS),
        description="Substring, basename or *.ext patterns",
    )
    exclude_globs: list[str] = Field(
        default_factory=list, description="Additional gitwildmatch patterns"
    )
    use_gitignore: bool = Field(
        default=True, description="Merge root .gitignore entries into ignore_patterns"
    )

    @field_validator("ignore_patterns", "exclude_globs")
    def strip_empty(cls, v: list[str]) -> list[str]:
        return [p.strip() for p in v if p and p.strip()]

    @model_validator(mode="after")
    def check_timers(self) -> "WatchConfig":
        if self.max_wait_ms < self.debounce_ms:
            raise ValueError(
                f"max_wait_ms ({self.max_wait_ms}) must not be below debounce_ms ({self.debounce_ms})"
            )
        return self

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def max_wait_seconds(self) -> float:
        return self.max_wait_ms / 1000.0

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add watch-related CLI arguments."""
        parser.add_argument("--debounce-ms", type=int, help="Debounce window in ms")
        parser.add_argument("--max-wait-ms", type=int, help="Maximum wait in ms")
        parser.add_argument(
            "--ignore",
            action="append",
            metavar="PATTERN",
            help="Extra ignore pattern (repeatable)",
        )
        parser.add_argument(
            "--no-gitignore",
            action="store_true",
            help="Do not merge .gitignore patterns",
        )

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load watch config from environment variables."""
        config: dict[str, Any] = {}
        if debounce := os.getenv("MEMO_WATCH__DEBOUNCE_MS"):
            config["debounce_ms"] = int(debounce)
        if max_wait := os.getenv("MEMO_WATCH__MAX_WAIT_MS"):
            config["max_wait_ms"] = int(max_wait)
        if patterns := os.getenv("MEMO_WATCH__IGNORE_PATTERNS"):
            config["ignore_patterns"] = [p for p in patterns.split(",") if p.strip()]
        return config

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract watch config from CLI arguments."""
        overrides: dict[str, Any] = {}
        if getattr(args, "debounce_ms", None) is not None:
            overrides["debounce_ms"] = args.debounce_ms
        if getattr(args, "max_wait_ms", None) is not None:
            overrides["max_wait_ms"] = args.max_wait_ms
        if getattr(args, "no_gitignore", False):
            overrides["use_gitignore"] = False
        return overrides
