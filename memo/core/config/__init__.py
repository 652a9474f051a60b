"""Configuration models for memo."""

from .agent_config import AgentConfig
from .config import Config
from .index_config import IndexConfig
from .watch_config import DEFAULT_IGNORE_PATTERNS, WatchConfig

__all__ = [
    "AgentConfig",
    "Config",
    "DEFAULT_IGNORE_PATTERNS",
    "IndexConfig",
    "WatchConfig",
]
