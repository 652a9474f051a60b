"""Agent providers."""

from .claude_code_cli_agent import ClaudeCodeCLIAgent, session_uuid

__all__ = ["ClaudeCodeCLIAgent", "session_uuid"]
