"""Helpers shared by the analysing commands."""

from loguru import logger

from memo.core.config.config import Config
from memo.providers.agent.claude_code_cli_agent import ClaudeCodeCLIAgent


def build_agent(config: Config) -> ClaudeCodeCLIAgent:
    agent = ClaudeCodeCLIAgent(
        binary=config.agent.binary,
        model=config.agent.model,
        api_key=config.agent.api_key_value(),
        turn_timeout=config.agent.turn_timeout,
    )
    if not agent.is_available():
        logger.warning(
            f"Agent CLI '{config.agent.binary}' not found on PATH; analysis cycles will fail"
        )
    return agent
