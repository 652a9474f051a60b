"""Shared value types."""

from .changes import ChangeKind, PendingChange, classify_event

__all__ = ["ChangeKind", "PendingChange", "classify_event"]
