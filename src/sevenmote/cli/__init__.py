"""
CLI module - Command-line interface for Sevenmote.
"""

from sevenmote.cli.commands import main

__all__ = ["main"]
