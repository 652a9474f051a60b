"""Synthesis orchestrator - one batch (or one repair request) per agent turn.

# FILE_CONTEXT: Owns the agent session of a working directory
# SESSION: The id is derived from the work dir, so restarts of memo continue
#   the same agent conversation instead of piling up new ones.
"""

from __future__ import annotations

import hashlib
from contextlib import aclosing
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger as _default_logger

from memo.core.exceptions import SynthesisError
from memo.core.types.changes import PendingChange
from memo.interfaces.agent_provider import (
    AgentMessage,
    AgentProvider,
    AgentSession,
    ApprovalRequest,
    ContentPart,
    SessionOptions,
    StatusUpdate,
)
from memo.services.prompts.synthesis import build_initial_prompt
from memo.utils.line_buffer import LineBuffer

SESSION_PREFIX = "memo-"


def derive_session_id(work_dir: Path | str) -> str:
    """``memo-`` followed by the first 8 hex chars of sha256(work_dir)."""
    digest = hashlib.sha256(str(work_dir).encode("utf-8")).hexdigest()
    return SESSION_PREFIX + digest[:8]


class SynthesisOrchestrator:
    def __init__(
        self,
        agent: AgentProvider,
        work_dir: Path,
        index_dir: str = ".memo/index",
        mcp_config: Path | None = None,
        model: str | None = None,
        line_timeout: float = 0.5,
        logger: Any | None = None,
    ) -> None:
        self._agent = agent
        self._work_dir = Path(work_dir)
        self._index_dir = index_dir
        self._mcp_config = mcp_config
        self._model = model
        self._line_timeout = line_timeout
        self._log = logger or _default_logger.bind(component="synthesis")
        self._session: AgentSession | None = None
        self.session_id = derive_session_id(self._work_dir)
        self.turns = 0

    async def _ensure_session(self) -> AgentSession:
        if self._session is None:
            options = SessionOptions(
                session_id=self.session_id,
                work_dir=self._work_dir,
                model=self._model,
                mcp_config=self._mcp_config,
                auto_approve=True,
            )
            try:
                self._session = await self._agent.new_session(options)
            except SynthesisError:
                raise
            except Exception as e:
                raise SynthesisError(f"Failed to create agent session: {e}") from e
            self._log.info(f"Using session ID: {self.session_id} for {self._work_dir}")
        return self._session

    async def synthesize(
        self,
        batch: Sequence[PendingChange],
        feedback: str | None = None,
        batch_number: int = 1,
        total_batches: int = 1,
    ) -> None:
        """Run one agent turn.

        Without feedback the initial synthesis prompt for ``batch`` is sent,
        otherwise ``feedback`` is sent as-is within the same session.

        Raises:
            SynthesisError: the turn could not be started or reported an error
        """
        if feedback is None:
            prompt = build_initial_prompt(
                self._index_dir, batch, batch_number, total_batches
            )
            kind = "initial prompt"
        else:
            prompt = feedback
            kind = "feedback prompt"

        session = await self._ensure_session()
        self._log.debug(
            f"Batch {batch_number}/{total_batches}: sending {kind} ({len(batch)} files)"
        )
        self.turns += 1
        try:
            turn = await session.prompt(prompt)
        except SynthesisError:
            raise
        except Exception as e:
            raise SynthesisError(f"Failed to start agent turn: {e}") from e

        lines = LineBuffer(timeout=self._line_timeout)
        try:
            async with aclosing(turn.steps()) as steps:
                async for step in steps:
                    async with aclosing(step.messages()) as messages:
                        async for message in messages:
                            await self._handle_message(message, lines)
                    self._emit(lines.flush(force=True))
        except SynthesisError:
            raise
        except Exception as e:
            raise SynthesisError(f"agent stream failed: {e}") from e
        finally:
            self._emit(lines.flush(force=True))

        error = turn.err()
        if error is not None:
            raise SynthesisError(f"turn error: {error}") from error

    async def _handle_message(self, message: AgentMessage, lines: LineBuffer) -> None:
        if isinstance(message, ApprovalRequest):
            self._log.debug(f"Auto-approving request for {message.tool}")
            await message.respond(True)
        elif isinstance(message, ContentPart):
            if message.kind == "text":
                lines.write(message.text)
                self._emit(lines.flush())
        elif isinstance(message, StatusUpdate):
            # a generation round is complete
            self._emit(lines.flush(force=True))
        else:
            raise TypeError(f"Unhandled agent message type: {type(message).__name__}")

    def _emit(self, text: str) -> None:
        if text:
            self._log.debug(f"Agent output: {text}")

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
