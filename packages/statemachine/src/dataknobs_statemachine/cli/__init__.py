"""Command-line interface for state machine configurations."""

from .main import cli

__all__ = ["cli"]
