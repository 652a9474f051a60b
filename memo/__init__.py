"""memo - keeps an agent-generated knowledge index of a codebase fresh."""

from memo.version import __version__

__all__ = ["__version__"]
