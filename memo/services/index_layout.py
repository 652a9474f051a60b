"""Creation of the ``.memo`` directory skeleton.

Layout::

    .memo/
      index/{arch,interface,stories,issues}.json
      mcp.json        isolated MCP config handed to the agent
      .gitignore      runtime files that must not be committed
      watcher.lock    (runtime)
      status.json     (runtime)
      .history        (runtime)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger as _default_logger

from memo.core.exceptions import StartupError
from memo.services.index_schemas import DEFAULT_DOCUMENTS

MCP_CONFIG_NAME = "mcp.json"
HISTORY_FILE_NAME = ".history"
RUNTIME_FILES = ("watcher.lock", "status.json", HISTORY_FILE_NAME)


def init_index(memo_dir: Path, logger: Any | None = None) -> list[Path]:
    """Create missing index documents and support files.

    Existing files are never touched.

    Returns:
        Paths that were created

    Raises:
        StartupError: the directory or a file cannot be created
    """
    log = logger or _default_logger.bind(component="index")
    memo_dir = Path(memo_dir)
    index_dir = memo_dir / "index"
    created: list[Path] = []

    try:
        index_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StartupError(f"cannot create index directory {index_dir}: {e}", index_dir) from e

    files: dict[Path, str] = {
        index_dir / name: json.dumps(doc, indent=2) + "\n"
        for name, doc in DEFAULT_DOCUMENTS.items()
    }
    files[memo_dir / MCP_CONFIG_NAME] = "{}\n"
    files[memo_dir / ".gitignore"] = "\n".join(RUNTIME_FILES) + "\n"

    for path, content in files.items():
        if path.exists():
            continue
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StartupError(f"cannot create {path}: {e}", path) from e
        created.append(path)
        log.debug(f"Created {path}")

    if created:
        log.info(f"Initialized {len(created)} file(s) in {memo_dir}")
    return created
