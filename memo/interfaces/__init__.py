"""Interfaces to external collaborators."""

from .agent_provider import (
    AgentMessage,
    AgentProvider,
    AgentSession,
    ApprovalRequest,
    ContentPart,
    SessionOptions,
    StatusUpdate,
    Step,
    Turn,
)

__all__ = [
    "AgentMessage",
    "AgentProvider",
    "AgentSession",
    "ApprovalRequest",
    "ContentPart",
    "SessionOptions",
    "StatusUpdate",
    "Step",
    "Turn",
]
