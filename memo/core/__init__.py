"""Core types, configuration and exceptions for memo."""
