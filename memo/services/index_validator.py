"""Structural and schema checks over the on-disk index.

Only the first violation is reported; the repair loop feeds it back to the
agent and validates again, so one precise error is more useful than a list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match
from loguru import logger as _default_logger

from memo.services.index_schemas import SCHEMAS

RULE_MISSING = "STRUCT-001"
RULE_PARSE = "JSON-PARSE"


@dataclass(frozen=True)
class IndexValidationError:
    rule_id: str
    file: str
    message: str
    severity: str = "error"

    def __str__(self) -> str:
        return f"{self.rule_id} ({self.file}): {self.message}"


def _format_location(path: Any) -> str:
    parts = [f"[{p}]" if isinstance(p, int) else f".{p}" for p in path]
    return "$" + "".join(parts)


class IndexValidator:
    """Validates ``<index_dir>/{arch,interface,stories,issues}.json``."""

    def __init__(
        self,
        index_dir: Path,
        schemas: dict[str, dict[str, Any]] | None = None,
        logger: Any | None = None,
    ) -> None:
        self.index_dir = Path(index_dir)
        self._schemas = schemas or SCHEMAS
        self._validators = {
            name: Draft7Validator(schema) for name, schema in self._schemas.items()
        }
        self._log = logger or _default_logger.bind(component="validator")

    @property
    def documents(self) -> tuple[str, ...]:
        return tuple(self._schemas)

    def validate(self) -> IndexValidationError | None:
        """Return the first violation, or None when the index is valid."""
        for name in self.documents:
            if not (self.index_dir / name).is_file():
                return self._fail(RULE_MISSING, name, "required file missing")

        for name in self.documents:
            error = self._validate_document(name)
            if error is not None:
                return error
        return None

    def _validate_document(self, name: str) -> IndexValidationError | None:
        path = self.index_dir / name
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return self._fail(RULE_MISSING, name, "required file missing")
        except (OSError, UnicodeDecodeError) as e:
            return self._fail(RULE_PARSE, name, f"cannot read file: {e}")
        except json.JSONDecodeError as e:
            return self._fail(RULE_PARSE, name, f"invalid JSON: {e}")

        error = best_match(self._validators[name].iter_errors(document))
        if error is None:
            return None
        return self._fail(
            f"JSON-{error.validator}",
            name,
            f"{_format_location(error.absolute_path)}: {error.message}",
        )

    def _fail(self, rule_id: str, file: str, message: str) -> IndexValidationError:
        err = IndexValidationError(rule_id=rule_id, file=file, message=message)
        self._log.debug(f"Validation failed: {err}")
        return err
