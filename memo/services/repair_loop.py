"""Validate-and-repair loop around one batch.

States per attempt::

    Sent -> Validated(pass) -> Done
    Sent -> Validated(fail) -> FeedbackSent -> Sent ...  -> Exhausted

Attempt 1 sends the initial synthesis, attempts 2..N send the previous
validation error back to the agent. Every attempt is followed by exactly one
validation, so at most ``max_attempts`` agent turns are made per batch.
Artifacts are never rolled back.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger as _default_logger

from memo.core.exceptions import SynthesisError, ValidationExhaustedError
from memo.core.types.changes import PendingChange
from memo.services.index_validator import IndexValidationError, IndexValidator
from memo.services.prompts.synthesis import build_feedback_prompt
from memo.services.synthesis_orchestrator import SynthesisOrchestrator

DEFAULT_MAX_ATTEMPTS = 5


@dataclass(frozen=True)
class RepairAttempt:
    attempt_number: int
    error: IndexValidationError | None
    # True when this attempt's turn carried validator feedback
    feedback_sent: bool


@dataclass
class RepairOutcome:
    batch: list[str]
    attempts: list[RepairAttempt] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].error is None


class RepairLoop:
    def __init__(
        self,
        orchestrator: SynthesisOrchestrator,
        validator: IndexValidator,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        index_dir: str = ".memo/index",
        logger: Any | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._orchestrator = orchestrator
        self._validator = validator
        self._max_attempts = max_attempts
        self._index_dir = index_dir
        self._log = logger or _default_logger.bind(component="repair")

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def run(
        self,
        batch: Sequence[PendingChange],
        batch_number: int = 1,
        total_batches: int = 1,
    ) -> RepairOutcome:
        """Drive one batch to a valid index.

        Raises:
            SynthesisError: a turn failed (cycle-fatal)
            ValidationExhaustedError: every attempt ended invalid
        """
        label = f"Batch {batch_number}/{total_batches}"
        outcome = RepairOutcome(batch=[c.path for c in batch])
        feedback: str | None = None
        last_error: IndexValidationError | None = None

        for attempt in range(1, self._max_attempts + 1):
            await self._orchestrator.synthesize(
                batch,
                feedback=feedback,
                batch_number=batch_number,
                total_batches=total_batches,
            )
            error = self._validator.validate()
            outcome.attempts.append(RepairAttempt(attempt, error, feedback is not None))

            if error is None:
                self._log.info(f"{label} validation passed (attempt {attempt})")
                return outcome

            last_error = error
            self._log.warning(
                f"{label}: validation failed (attempt {attempt}/{self._max_attempts}): {error}"
            )
            if attempt < self._max_attempts:
                feedback = self._render_feedback(error, attempt + 1)

        raise ValidationExhaustedError(outcome.batch, self._max_attempts, last_error)

    def _render_feedback(self, error: IndexValidationError, attempt: int) -> str:
        try:
            return build_feedback_prompt(
                self._index_dir,
                rule_id=error.rule_id,
                file=error.file,
                message=error.message,
                attempt=attempt,
                max_attempts=self._max_attempts,
            )
        except (KeyError, ValueError, TypeError) as e:
            raise SynthesisError(f"Failed to render feedback for {error.file}: {e}") from e
