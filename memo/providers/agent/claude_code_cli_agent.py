"""Claude Code CLI agent provider for memo.

Wraps ``claude --print --output-format stream-json`` so one prompt becomes
one streamed turn. The session id is pinned so consecutive turns (initial
synthesis, then repair feedback) share the conversation.

Event mapping (one JSON object per stdout line):
- ``system``                       -> StatusUpdate
- ``assistant`` text blocks        -> ContentPart, then StatusUpdate
- ``user`` with a ``tool_result``  -> end of the current step
- ``result`` with ``is_error``     -> turn error

Permissions are bypassed on the CLI side, so this provider never emits
ApprovalRequest.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
import subprocess
import uuid
from collections.abc import AsyncGenerator
from typing import Any

from loguru import logger as _default_logger

from memo.core.exceptions import SynthesisError
from memo.interfaces.agent_provider import (
    AgentMessage,
    AgentProvider,
    AgentSession,
    ContentPart,
    SessionOptions,
    StatusUpdate,
    Step,
    Turn,
)

# stream-json lines can carry whole file contents
STREAM_LIMIT = 16 * 1024 * 1024


def session_uuid(session_id: str) -> str:
    """The CLI only accepts UUIDs; derive a stable one from our id."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"memo:{session_id}"))


def _sanitize_text(s: str, max_len: int = 800) -> str:
    """Truncate and redact potential secrets in error text."""
    text = s if len(s) <= max_len else (s[:max_len] + "…[truncated]")
    patterns = [
        r"(?i)(authorization\s*:\s*bearer\s+)[A-Za-z0-9._-]+",
        r"(?i)(api[_-]?key\s*[=:]\s*)([A-Za-z0-9-_]{10,})",
        r"(?i)(secret|token)[\s=:]+([A-Za-z0-9._-]{10,})",
    ]
    for pat in patterns:
        text = re.sub(pat, r"\1[REDACTED]", text)
    return text.strip()


class ClaudeCodeCLIAgent(AgentProvider):
    """Agent provider backed by the ``claude`` CLI."""

    VERSION_CHECK_TIMEOUT = 5

    def __init__(
        self,
        binary: str = "claude",
        model: str | None = None,
        api_key: str | None = None,
        turn_timeout: float = 1800.0,
        logger: Any | None = None,
    ) -> None:
        self._binary = binary
        self._model = model
        self._api_key = api_key
        self._turn_timeout = turn_timeout
        self._log = logger or _default_logger.bind(component="agent")

    @property
    def name(self) -> str:
        return "claude-code-cli"

    def is_available(self) -> bool:
        """Check if the CLI binary is on PATH (sync)."""
        try:
            subprocess.run(
                [self._binary, "--version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.VERSION_CHECK_TIMEOUT,
                check=False,
            )
            return True
        except (subprocess.SubprocessError, FileNotFoundError):
            return False

    def _env(self) -> dict[str, str]:
        env = os.environ.copy()
        if self._api_key:
            env["ANTHROPIC_API_KEY"] = self._api_key
        return env

    def build_command(self, options: SessionOptions, *, resume: bool) -> list[str]:
        cmd = [
            self._binary,
            "--print",
            "--output-format",
            "stream-json",
            "--verbose",
        ]
        model = options.model or self._model
        if model:
            cmd += ["--model", model]
        if options.auto_approve:
            cmd += ["--permission-mode", "bypassPermissions"]
        if options.mcp_config is not None:
            cmd += ["--mcp-config", str(options.mcp_config), "--strict-mcp-config"]
        sid = session_uuid(options.session_id)
        cmd += ["--resume", sid] if resume else ["--session-id", sid]
        return cmd

    async def new_session(self, options: SessionOptions) -> AgentSession:
        return ClaudeCodeSession(self, options)

    async def spawn(
        self, options: SessionOptions, content: str, *, resume: bool
    ) -> asyncio.subprocess.Process:
        cmd = self.build_command(options, resume=resume)
        self._log.debug(f"Starting agent: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(options.work_dir),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
                limit=STREAM_LIMIT,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise SynthesisError(f"Cannot start agent '{self._binary}': {e}") from e

        assert proc.stdin is not None
        try:
            proc.stdin.write(content.encode("utf-8"))
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._log.warning(f"Agent closed stdin early: {e}")
        finally:
            proc.stdin.close()
        return proc


class ClaudeCodeSession(AgentSession):
    def __init__(self, agent: ClaudeCodeCLIAgent, options: SessionOptions) -> None:
        self._agent = agent
        self._options = options
        # The first turn creates the CLI session, later turns resume it.
        self._created = False

    @property
    def session_id(self) -> str:
        return self._options.session_id

    async def prompt(self, content: str) -> Turn:
        resume = self._created
        proc = await self._agent.spawn(self._options, content, resume=resume)
        first = await self._peek(proc)

        if not first and not resume:
            err = await self._stderr(proc)
            if "already in use" in err.lower():
                # Session survives from an earlier run of this work dir.
                self._agent._log.info("Agent session exists, resuming it")
                proc = await self._agent.spawn(self._options, content, resume=True)
                first = await self._peek(proc)
            elif proc.returncode not in (None, 0):
                raise SynthesisError(
                    f"Agent exited with code {proc.returncode}: {_sanitize_text(err)}"
                )

        self._created = True
        return ClaudeCodeTurn(proc, first, timeout=self._agent._turn_timeout, logger=self._agent._log)

    async def _peek(self, proc: asyncio.subprocess.Process) -> bytes:
        assert proc.stdout is not None
        try:
            return await asyncio.wait_for(
                proc.stdout.readline(), timeout=self._agent._turn_timeout
            )
        except asyncio.TimeoutError as e:
            _kill(proc)
            raise SynthesisError("Agent produced no output before the turn timeout") from e
        except ValueError as e:
            _kill(proc)
            raise SynthesisError(f"Agent output line too long: {e}") from e
        except asyncio.CancelledError:
            _kill(proc)
            raise

    @staticmethod
    async def _stderr(proc: asyncio.subprocess.Process) -> str:
        assert proc.stderr is not None
        raw = await proc.stderr.read()
        await proc.wait()
        return raw.decode("utf-8", errors="ignore")


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass


class _CLIStep(Step):
    def __init__(self, turn: "ClaudeCodeTurn") -> None:
        self._turn = turn

    async def messages(self) -> AsyncGenerator[AgentMessage, None]:
        while True:
            event = await self._turn._next_event()
            if event is None:
                return
            etype = event.get("type")

            if etype == "system":
                yield StatusUpdate(str(event.get("subtype", "system")))
            elif etype == "assistant":
                for block in (event.get("message") or {}).get("content") or []:
                    if not isinstance(block, dict):
                        continue
                    if block.get("type") == "text" and block.get("text"):
                        yield ContentPart(block["text"])
                    elif block.get("type") == "thinking" and block.get("thinking"):
                        yield ContentPart(block["thinking"], kind="thinking")
                    elif block.get("type") == "tool_use":
                        self._turn._log.debug(f"Agent tool call: {block.get('name')}")
                yield StatusUpdate("assistant")
            elif etype == "user":
                content = (event.get("message") or {}).get("content") or []
                if any(
                    isinstance(b, dict) and b.get("type") == "tool_result"
                    for b in content
                ):
                    return
            elif etype == "result":
                if event.get("is_error"):
                    detail = event.get("result") or event.get("subtype") or "unknown error"
                    self._turn._error = SynthesisError(f"Agent turn failed: {detail}")
                self._turn._saw_result = True
            else:
                self._turn._log.debug(f"Ignoring agent event type {etype!r}")


class ClaudeCodeTurn(Turn):
    def __init__(
        self,
        proc: asyncio.subprocess.Process,
        first_line: bytes,
        *,
        timeout: float,
        logger: Any,
    ) -> None:
        self._proc = proc
        self._pending = first_line
        self._deadline = asyncio.get_running_loop().time() + timeout
        self._timeout = timeout
        self._log = logger
        self._error: Exception | None = None
        self._eof = False
        self._saw_result = False
        self._consumed = False

    def err(self) -> Exception | None:
        return self._error

    async def steps(self) -> AsyncGenerator[Step, None]:
        if self._consumed:
            raise RuntimeError("Turn.steps() can only be iterated once")
        self._consumed = True
        try:
            while not self._eof:
                yield _CLIStep(self)
            await self._finish()
        except asyncio.CancelledError:
            _kill(self._proc)
            raise
        finally:
            _kill(self._proc)

    async def _next_event(self) -> dict[str, Any] | None:
        while not self._eof:
            line = await self._readline()
            if not line:
                self._eof = True
                return None
            text = line.decode("utf-8", errors="ignore").strip()
            if not text:
                continue
            try:
                event = json.loads(text)
            except json.JSONDecodeError:
                self._log.debug(f"Non-JSON agent output: {_sanitize_text(text, 200)}")
                continue
            if isinstance(event, dict):
                return event
        return None

    async def _readline(self) -> bytes:
        if self._pending is not None:
            line, self._pending = self._pending, None
            return line
        assert self._proc.stdout is not None
        remaining = self._deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return self._on_timeout()
        try:
            return await asyncio.wait_for(self._proc.stdout.readline(), timeout=remaining)
        except asyncio.TimeoutError:
            return self._on_timeout()
        except ValueError as e:
            # line longer than the stream limit
            return self._abort(SynthesisError(f"Agent output line too long: {e}"))

    def _on_timeout(self) -> bytes:
        return self._abort(SynthesisError(f"Agent turn timed out after {self._timeout}s"))

    def _abort(self, error: Exception) -> bytes:
        _kill(self._proc)
        if self._error is None:
            self._error = error
        self._eof = True
        return b""

    async def _finish(self) -> None:
        assert self._proc.stderr is not None
        raw_err = await self._proc.stderr.read()
        code = await self._proc.wait()
        if self._error is None and code != 0:
            err = _sanitize_text(raw_err.decode("utf-8", errors="ignore"))
            self._error = SynthesisError(f"Agent exited with code {code}: {err}")
