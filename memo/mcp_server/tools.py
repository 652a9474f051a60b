"""Declarative tool registry for the memo MCP server.

Tools are read-only views over ``.memo/index``. Results carry a staleness
warning while the watcher reports an analysis in progress.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypedDict

from typing_extensions import NotRequired

from memo.mcp_server.query import get_value, list_keys
from memo.services.index_status import format_elapsed, read_status

SCHEMA_DESCRIPTION = """Schema:
- [arch]: {modules: [{name, description, interfaces}], relationships: {diagram, notes}}
- [interface]: {external: [{type, name, params, description}], internal: [...]}
- [stories]: {stories: [{title, tags, lines}]}
- [issues]: {issues: [{tags, title, description, locations: [{file, keyword, line}]}]}"""

WHEN_TO_USE = """**When to use this tool:**
Use memo tools FIRST when you need to understand, summarize, explore, or navigate this codebase. The index is pre-built documentation that is faster and more precise than scanning files yourself.

Typical requests:
- "What does this project do?" / "How does it work?"
- "Show me the architecture / main modules and how they relate"
- "What interfaces or APIs does this project expose?"
- "Find known issues or TODOs\""""


class ToolResult(TypedDict):
    text: str
    warning: NotRequired[str]


@dataclass
class Tool:
    """Tool definition with metadata and implementation."""

    name: str
    description: str
    parameters: dict[str, Any]
    implementation: Callable[[Path, str], dict[str, Any]]


def _path_parameters(example: str) -> dict[str, Any]:
    return {
        "properties": {
            "path": {
                "description": f"Path like {example}",
                "type": "string",
            },
        },
        "required": ["path"],
        "type": "object",
    }


TOOL_DEFINITIONS = [
    Tool(
        name="memo_list_keys",
        description=(
            f"{WHEN_TO_USE}\n\n**Function:** List available keys at a path in .memo/index JSON files.\n\n"
            f"{SCHEMA_DESCRIPTION}\n\nReturns {{type: 'dict'|'list', keys?: [...], length?: N}}"
        ),
        parameters=_path_parameters("[arch][modules][0]"),
        implementation=list_keys,
    ),
    Tool(
        name="memo_get_value",
        description=(
            f"{WHEN_TO_USE}\n\n**Function:** Get the JSON value at a path in .memo/index files.\n\n"
            f"{SCHEMA_DESCRIPTION}\n\nReturns {{value: '<JSON string>'}}"
        ),
        parameters=_path_parameters("[arch][modules][0][name]"),
        implementation=get_value,
    ),
]

TOOL_REGISTRY: dict[str, Tool] = {tool.name: tool for tool in TOOL_DEFINITIONS}


def staleness_warning(memo_dir: Path) -> str | None:
    status = read_status(memo_dir)
    if not status.analyzing:
        return None
    warning = "Data may be stale: analysis in progress"
    elapsed = status.elapsed_seconds()
    if elapsed is not None:
        warning += f" (started {format_elapsed(elapsed)} ago)"
    return warning


def execute_tool(memo_dir: Path, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
    """Execute a tool from the registry.

    Raises:
        ValueError: unknown tool or missing ``path`` argument
        QueryError: invalid path or failed traversal
    """
    if tool_name not in TOOL_REGISTRY:
        raise ValueError(f"Unknown tool: {tool_name}")
    path = arguments.get("path")
    if not isinstance(path, str):
        raise ValueError("Invalid arguments: 'path' must be a string")

    tool = TOOL_REGISTRY[tool_name]
    payload = tool.implementation(Path(memo_dir) / "index", path)
    result: ToolResult = {"text": json.dumps(payload, ensure_ascii=False)}
    warning = staleness_warning(memo_dir)
    if warning:
        result["warning"] = warning
    return result
