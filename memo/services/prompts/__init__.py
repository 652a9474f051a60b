"""Prompt templates for agent turns."""

from .synthesis import (
    build_feedback_prompt,
    build_initial_prompt,
    format_changed_files,
    get_batch_header,
)

__all__ = [
    "build_feedback_prompt",
    "build_initial_prompt",
    "format_changed_files",
    "get_batch_header",
]
