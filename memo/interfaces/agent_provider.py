"""Agent provider interface for memo.

An agent session is a conversation with a generative agent that can read and
write files in the working directory. One ``prompt()`` call is one turn; a
turn streams steps, a step streams messages.

Messages form a closed set: ``ApprovalRequest``, ``ContentPart`` and
``StatusUpdate``. Consumers are expected to handle every variant.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union


@dataclass
class ApprovalRequest:
    """The agent asks permission to run a tool."""

    tool: str
    description: str = ""
    _responder: Callable[[bool], Awaitable[None]] | None = field(
        default=None, repr=False, compare=False
    )
    approved: bool | None = None

    async def respond(self, approved: bool) -> None:
        self.approved = approved
        if self._responder is not None:
            await self._responder(approved)


@dataclass
class ContentPart:
    """A fragment of agent output. Fragments are not line-aligned."""

    text: str
    kind: Literal["text", "thinking"] = "text"


@dataclass
class StatusUpdate:
    """The agent finished a round (message, tool call, init ...)."""

    detail: str = ""


AgentMessage = Union[ApprovalRequest, ContentPart, StatusUpdate]


@dataclass
class SessionOptions:
    session_id: str
    work_dir: Path
    model: str | None = None
    mcp_config: Path | None = None
    auto_approve: bool = True


class Step(ABC):
    @abstractmethod
    def messages(self) -> AsyncGenerator[AgentMessage, None]:
        """Messages of this step in order. Single pass."""
        ...


class Turn(ABC):
    @abstractmethod
    def steps(self) -> AsyncGenerator[Step, None]:
        """Steps of this turn in order. Single pass; each step must be
        drained before the next one is requested."""
        ...

    @abstractmethod
    def err(self) -> Exception | None:
        """Turn-level error, meaningful once ``steps()`` is exhausted."""
        ...


class AgentSession(ABC):
    @property
    @abstractmethod
    def session_id(self) -> str:
        ...

    @abstractmethod
    async def prompt(self, content: str) -> Turn:
        """Start one turn.

        Raises:
            SynthesisError: the turn could not be started
        """
        ...

    async def close(self) -> None:
        return None


class AgentProvider(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def new_session(self, options: SessionOptions) -> AgentSession:
        ...
