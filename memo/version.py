"""Version information for memo."""

__version__ = "0.3.0"
