"""Agent configuration for memo.

Selects the agent CLI binary and model used for synthesis turns.
"""

import argparse
import os
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator


class AgentConfig(BaseModel):
    """Generative agent settings.

    Configuration can be provided via:
    - Environment variables (MEMO_AGENT__*)
    - Configuration files
    - CLI arguments
    - Default values
    """

    binary: str = Field(default="claude", description="Agent CLI executable")
    model: str | None = Field(default=None, description="Model passed to the agent CLI")
    api_key: SecretStr | None = Field(
        default=None, description="API key exported to the agent process"
    )
    turn_timeout: float = Field(
        default=1800.0, gt=0, description="Seconds one agent turn may run"
    )
    line_timeout_ms: int = Field(
        default=500,
        ge=1,
        description="Longest wait before a partial line of agent output is logged",
    )

    @field_validator("binary")
    def validate_binary(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Agent binary must not be empty")
        return v.strip()

    def api_key_value(self) -> str | None:
        return self.api_key.get_secret_value() if self.api_key else None

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add agent-related CLI arguments."""
        parser.add_argument("--model", help="Model used for synthesis turns")
        parser.add_argument(
            "--agent-binary",
            help="Agent CLI executable (default: claude)",
        )

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load agent config from environment variables."""
        config: dict[str, Any] = {}
        if binary := os.getenv("MEMO_AGENT__BINARY"):
            config["binary"] = binary
        if model := os.getenv("MEMO_AGENT__MODEL"):
            config["model"] = model
        if api_key := os.getenv("MEMO_AGENT__API_KEY"):
            config["api_key"] = api_key
        if timeout := os.getenv("MEMO_AGENT__TURN_TIMEOUT"):
            config["turn_timeout"] = float(timeout)
        return config

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract agent config from CLI arguments."""
        overrides: dict[str, Any] = {}
        if getattr(args, "model", None):
            overrides["model"] = args.model
        if getattr(args, "agent_binary", None):
            overrides["binary"] = args.agent_binary
        return overrides

    def __repr__(self) -> str:
        return f"AgentConfig(binary={self.binary}, model={self.model})"
