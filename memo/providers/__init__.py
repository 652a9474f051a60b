"""Concrete implementations of memo's external collaborators."""
