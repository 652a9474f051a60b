"""Index configuration for memo."""

import argparse
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


class IndexConfig(BaseModel):
    """Location of the index and bounds on the synthesis/repair loop."""

    dir_name: str = Field(default=".memo", description="Index directory under the work dir")
    max_attempts: int = Field(
        default=5, ge=1, le=100, description="Synthesis attempts per batch"
    )
    batch_threshold: int = Field(
        default=100, ge=1, description="Maximum files per agent turn"
    )

    @field_validator("dir_name")
    def validate_dir_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Invalid index directory name: {v!r}")
        return v

    def memo_dir(self, work_dir: Path) -> Path:
        return work_dir / self.dir_name

    def index_dir(self, work_dir: Path) -> Path:
        return self.memo_dir(work_dir) / "index"

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add index-related CLI arguments."""
        parser.add_argument(
            "--max-attempts", type=int, help="Synthesis attempts per batch (1-100)"
        )
        parser.add_argument(
            "--batch-threshold", type=int, help="Maximum files per agent turn"
        )

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load index config from environment variables."""
        config: dict[str, Any] = {}
        if attempts := os.getenv("MEMO_INDEX__MAX_ATTEMPTS"):
            config["max_attempts"] = int(attempts)
        if threshold := os.getenv("MEMO_INDEX__BATCH_THRESHOLD"):
            config["batch_threshold"] = int(threshold)
        return config

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract index config from CLI arguments."""
        overrides: dict[str, Any] = {}
        if getattr(args, "max_attempts", None) is not None:
            overrides["max_attempts"] = args.max_attempts
        if getattr(args, "batch_threshold", None) is not None:
            overrides["batch_threshold"] = args.batch_threshold
        return overrides
