"""
Exception types shared across Sevenmote components.
"""

from typing import Optional


class SevenmoteError(Exception):
    """Base class for all Sevenmote errors."""


class NetworkError(SevenmoteError):
    """A remote request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SevenmoteError):
    """A remote response did not have the expected JSON shape."""


class NotFound(SevenmoteError):
    """The chosen emote name is no longer present in the mapping."""

    def __init__(self, name: str):
        super().__init__(f"Emote not found: {name}")
        self.name = name
