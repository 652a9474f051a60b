"""Path queries over the index documents.

Grammar: ``[file][segment]...`` e.g. ``[arch][modules][0][name]``.

- the first segment names a document: arch, interface, stories, issues
- a segment of ASCII digits is a list index, anything else an object key
- inside brackets ``\\[``, ``\\]`` and ``\\\\`` escape the bracket and
  backslash characters; any other escape is an error
- keys are limited to 100 characters and must not contain control characters

Paths come from untrusted clients, so every malformed input is rejected with
a QueryError rather than being interpreted leniently.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from memo.core.exceptions import MemoError
from memo.services.index_schemas import DOCUMENT_KEYS

MAX_KEY_LENGTH = 100
_ESCAPABLE = "[]\\"
_INDEX_RE = re.compile(r"[0-9]+")


class QueryError(MemoError):
    """Invalid path or failed traversal."""


@dataclass(frozen=True)
class PathSegment:
    key: str | None = None
    index: int | None = None

    @property
    def is_index(self) -> bool:
        return self.index is not None


def _validate_key(key: str) -> None:
    if len(key) > MAX_KEY_LENGTH:
        raise QueryError(f"key too long: {len(key)} chars (max {MAX_KEY_LENGTH})")
    for i, ch in enumerate(key):
        code = ord(ch)
        if code < 32 or code == 127:
            raise QueryError(f"control character in key at position {i}")


def parse_path(path: str) -> tuple[str, list[PathSegment]]:
    """Split ``path`` into (document key, remaining segments).

    Raises:
        QueryError: malformed path or unknown document
    """
    if not path:
        raise QueryError("empty path")

    segments: list[PathSegment] = []
    current: list[str] = []
    in_bracket = False
    escaped = False

    for pos, ch in enumerate(path):
        if escaped:
            if ch not in _ESCAPABLE:
                raise QueryError(f"invalid escape sequence at position {pos}")
            current.append(ch)
            escaped = False
            continue

        if ch == "\\":
            if not in_bracket:
                raise QueryError(f"unexpected character '\\' at position {pos}")
            escaped = True
        elif ch == "[":
            if in_bracket:
                raise QueryError(f"unexpected '[' at position {pos}")
            in_bracket = True
        elif ch == "]":
            if not in_bracket:
                raise QueryError(f"unexpected ']' at position {pos}")
            in_bracket = False
            key = "".join(current)
            current = []
            if not key:
                raise QueryError(f"empty segment at position {pos}")
            if _INDEX_RE.fullmatch(key):
                segments.append(PathSegment(index=int(key)))
            else:
                _validate_key(key)
                segments.append(PathSegment(key=key))
        else:
            if not in_bracket:
                raise QueryError(f"unexpected character '{ch}' at position {pos}")
            current.append(ch)

    if escaped:
        raise QueryError("trailing escape character")
    if in_bracket:
        raise QueryError("unclosed bracket")
    if not segments:
        raise QueryError("no segments in path")

    first = segments[0]
    if first.is_index:
        raise QueryError("first segment must be file name, not index")
    if first.key not in DOCUMENT_KEYS:
        allowed = ", ".join(DOCUMENT_KEYS)
        raise QueryError(f"invalid file: {first.key} (allowed: {allowed})")
    return first.key, segments[1:]


def _type_name(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def traverse(data: Any, segments: list[PathSegment]) -> Any:
    current = data
    for i, seg in enumerate(segments):
        if seg.is_index:
            if not isinstance(current, list):
                raise QueryError(f"segment {i}: expected array, got {_type_name(current)}")
            if seg.index >= len(current):
                raise QueryError(
                    f"segment {i}: index {seg.index} out of bounds (length {len(current)})"
                )
            current = current[seg.index]
        else:
            if not isinstance(current, dict):
                raise QueryError(f"segment {i}: expected object, got {_type_name(current)}")
            if seg.key not in current:
                raise QueryError(f"segment {i}: key '{seg.key}' not found")
            current = current[seg.key]
    return current


def load_document(index_dir: Path, file: str) -> Any:
    path = Path(index_dir) / DOCUMENT_KEYS[file]
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise QueryError(f"failed to read {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise QueryError(f"failed to parse {path}: {e}") from e


def _resolve(index_dir: Path, path: str) -> Any:
    file, segments = parse_path(path)
    return traverse(load_document(index_dir, file), segments)


def list_keys(index_dir: Path, path: str) -> dict[str, Any]:
    """Keys of an object or length of a list at ``path``."""
    value = _resolve(index_dir, path)
    if isinstance(value, dict):
        return {"type": "dict", "keys": list(value)}
    if isinstance(value, list):
        return {"type": "list", "length": len(value)}
    raise QueryError(f"value is not a dict or list, it's {_type_name(value)}")


def get_value(index_dir: Path, path: str) -> dict[str, str]:
    """Value at ``path`` serialized as a JSON string."""
    value = _resolve(index_dir, path)
    return {"value": json.dumps(value, ensure_ascii=False)}
