"""JSON Schemas (draft-07) of the index documents and their empty defaults."""

from __future__ import annotations

from typing import Any

DRAFT_07 = "http://json-schema.org/draft-07/schema#"


def _entry(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
    }


_STRING = {"type": "string"}
_STRINGS = {"type": "array", "items": {"type": "string"}}

_INTERFACE_ITEM = _entry(
    {"type": _STRING, "name": _STRING, "params": _STRING, "description": _STRING}
)

SCHEMAS: dict[str, dict[str, Any]] = {
    "arch.json": {
        "$schema": DRAFT_07,
        "type": "object",
        "properties": {
            "modules": {
                "type": "array",
                "items": _entry(
                    {"name": _STRING, "description": _STRING, "interfaces": _STRING}
                ),
            },
            "relationships": _entry({"diagram": _STRING, "notes": _STRING}),
        },
        "required": ["modules", "relationships"],
    },
    "interface.json": {
        "$schema": DRAFT_07,
        "type": "object",
        "properties": {
            "external": {"type": "array", "items": _INTERFACE_ITEM},
            "internal": {"type": "array", "items": _INTERFACE_ITEM},
        },
        "required": ["external", "internal"],
    },
    "stories.json": {
        "$schema": DRAFT_07,
        "type": "object",
        "properties": {
            "stories": {
                "type": "array",
                "items": _entry({"title": _STRING, "tags": _STRINGS, "lines": _STRINGS}),
            }
        },
        "required": ["stories"],
    },
    "issues.json": {
        "$schema": DRAFT_07,
        "type": "object",
        "properties": {
            "issues": {
                "type": "array",
                "items": _entry(
                    {
                        "tags": _STRINGS,
                        "title": _STRING,
                        "description": _STRING,
                        "locations": {
                            "type": "array",
                            "items": _entry(
                                {
                                    "file": _STRING,
                                    "keyword": _STRING,
                                    "line": {"type": "integer"},
                                }
                            ),
                        },
                    }
                ),
            }
        },
        "required": ["issues"],
    },
}

# Validation order; the first violation found wins.
REQUIRED_DOCUMENTS: tuple[str, ...] = tuple(SCHEMAS)

# Query key (first path segment) -> document file name
DOCUMENT_KEYS: dict[str, str] = {name.removesuffix(".json"): name for name in SCHEMAS}

DEFAULT_DOCUMENTS: dict[str, dict[str, Any]] = {
    "arch.json": {"modules": [], "relationships": {"diagram": "", "notes": ""}},
    "interface.json": {"external": [], "internal": []},
    "stories.json": {"stories": []},
    "issues.json": {"issues": []},
}
