"""IgnoreMatcher: exclusion logic for the watcher and full scans.

Two layers are evaluated, first match wins:

- simple patterns (config ``watch.ignore_patterns`` and merged .gitignore
  entries): a pattern matches when it occurs anywhere in the root-relative
  path, equals the basename, or, for ``*.ext`` patterns, is a suffix of the
  path. Substring matching is intentionally loose: ``.git`` also hides
  ``.github``.
- optional gitwildmatch globs (``watch.exclude_globs``) compiled with
  ``pathspec`` for users who want real gitignore semantics.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger
from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern


@dataclass
class MatchInfo:
    matched: bool
    pattern: Optional[str] = None
    source: str = "pattern"


def _compile_gitwildmatch(patterns: Iterable[str]) -> PathSpec:
    return PathSpec.from_lines(GitWildMatchPattern, patterns)


class IgnoreMatcher:
    def __init__(
        self,
        root: Path,
        patterns: Iterable[str],
        globs: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.patterns = [p for p in patterns if p]
        glob_list = [g for g in (globs or []) if g]
        self._spec = _compile_gitwildmatch(glob_list) if glob_list else None

    def relative(self, path: str | Path) -> str:
        """Root-relative POSIX form of ``path`` (absolute or relative)."""
        p = Path(path)
        if not p.is_absolute():
            return p.as_posix()
        try:
            return p.relative_to(self.root).as_posix()
        except ValueError:
            try:
                return p.resolve().relative_to(self.root).as_posix()
            except (OSError, ValueError):
                return p.as_posix()

    def match(self, path: str | Path, is_dir: bool = False) -> Optional[MatchInfo]:
        rel = self.relative(path)
        if rel in ("", "."):
            return None
        base = rel.rsplit("/", 1)[-1]

        for pattern in self.patterns:
            if pattern.startswith("*.") and rel.endswith(pattern[1:]):
                return MatchInfo(True, pattern)
            if pattern in rel or base == pattern:
                return MatchInfo(True, pattern)

        if self._spec is not None:
            if self._spec.match_file(rel) or (is_dir and self._spec.match_file(rel + "/")):
                return MatchInfo(True, None, source="glob")
        return None

    def is_ignored(self, path: str | Path, is_dir: bool = False) -> bool:
        return self.match(path, is_dir) is not None

    def iter_files(self) -> Iterable[Path]:
        """Walk the tree top-down, pruning ignored directories, yielding files."""
        for dirpath, dirnames, filenames in os.walk(self.root, topdown=True, onerror=_log_walk_error):
            dpath = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not self.is_ignored(dpath / d, is_dir=True))
            for name in sorted(filenames):
                fpath = dpath / name
                if not self.is_ignored(fpath):
                    yield fpath

    def iter_dirs(self, start: Optional[Path] = None) -> Iterable[Path]:
        """Yield ``start`` (default root) and every non-ignored directory below it."""
        top = Path(start) if start is not None else self.root
        if top != self.root and self.is_ignored(top, is_dir=True):
            return
        for dirpath, dirnames, _ in os.walk(top, topdown=True, onerror=_log_walk_error):
            dpath = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not self.is_ignored(dpath / d, is_dir=True))
            yield dpath


def _log_walk_error(err: OSError) -> None:
    logger.debug(f"Skipping unreadable path during walk: {err}")


def normalize_gitignore_pattern(line: str) -> str:
    return line.strip().removeprefix("/").removesuffix("/")


def load_gitignore_patterns(work_dir: Path) -> list[str]:
    """Read ``<work_dir>/.gitignore`` as simple ignore patterns.

    Blank lines, comments and ``!`` negations are skipped, leading and
    trailing slashes stripped and duplicates removed. A missing file yields
    an empty list.
    """
    gi = Path(work_dir) / ".gitignore"
    try:
        lines = gi.read_text(encoding="utf-8", errors="ignore").splitlines()
    except FileNotFoundError:
        return []

    out: list[str] = []
    seen: set[str] = set()
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        pattern = normalize_gitignore_pattern(line)
        if pattern and pattern not in seen:
            seen.add(pattern)
            out.append(pattern)
    return out


def merge_gitignore(patterns: Iterable[str], work_dir: Path) -> list[str]:
    """Append .gitignore patterns that are not already present."""
    merged = list(patterns)
    existing = set(merged)
    added = 0
    for p in load_gitignore_patterns(work_dir):
        if p not in existing:
            merged.append(p)
            existing.add(p)
            added += 1
    if added:
        logger.debug(f"Merged {added} patterns from .gitignore")
    return merged
