"""Exception hierarchy for memo.

Only startup failures and validation exhaustion surface to the top-level
coordinator as named failures; everything below that is either logged and
skipped or aborts the current cycle via SynthesisError.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memo.services.index_validator import IndexValidationError


class MemoError(Exception):
    """Base class for all memo errors."""


class ConfigError(MemoError):
    """Configuration could not be loaded or is invalid."""


class StartupError(MemoError):
    """The process cannot start (index directory, lock, ...)."""

    def __init__(self, message: str, resource: Path | str | None = None) -> None:
        super().__init__(message)
        self.resource = resource


class IndexLockedError(StartupError):
    """Another watcher already holds the index lock."""


class SynthesisError(MemoError):
    """An agent turn could not be started or finished with an error."""


class ValidationExhaustedError(MemoError):
    """The repair loop used every attempt without producing a valid index."""

    def __init__(
        self,
        batch: list[str],
        attempts: int,
        last_error: IndexValidationError | None,
    ) -> None:
        self.batch = batch
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"validation failed after {attempts} attempts{detail}")
