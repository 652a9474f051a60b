"""Change kinds produced by the file watcher and consumed by the change buffer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class ChangeKind(str, Enum):
    """Net effect of one or more filesystem events on a single path."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"

    @property
    def marker(self) -> str:
        """Single-letter marker used when listing changes in prompts."""
        return {"create": "A", "modify": "M", "delete": "D"}[self.value]


@dataclass(frozen=True)
class PendingChange:
    """A coalesced change waiting in the buffer."""

    path: str
    kind: ChangeKind


# watchdog event_type -> ChangeKind. Types missing here are resolved by stat.
_DIRECT_KINDS: dict[str, ChangeKind] = {
    "created": ChangeKind.CREATE,
    "modified": ChangeKind.MODIFY,
    "deleted": ChangeKind.DELETE,
}

# Event types that never change content.
_NOISE_EVENTS = frozenset({"opened", "closed_no_write"})


def classify_event(event_type: str, path: str | os.PathLike[str]) -> ChangeKind | None:
    """Map a raw watchdog event type to a ChangeKind.

    Returns None for events that carry no content change. Event types without
    a direct mapping (``closed`` and anything a future watchdog adds) are
    resolved against the filesystem: a path that still exists was modified, a
    vanished path was deleted.
    """
    if event_type in _NOISE_EVENTS:
        return None
    kind = _DIRECT_KINDS.get(event_type)
    if kind is not None:
        return kind
    return ChangeKind.MODIFY if os.path.lexists(path) else ChangeKind.DELETE
