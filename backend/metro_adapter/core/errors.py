"""
Exceptions raised by the review adapter.

Every failure is returned to the review framework as-is; nothing here is
retried or recovered locally.
"""

from typing import Optional


class AdapterError(Exception):
    """Base class for review adapter errors."""
    pass


class LinkValidationError(AdapterError):
    """Raised when an extra link violates the link constraints."""

    def __init__(self, message: str, link_name: Optional[str] = None):
        super().__init__(message)
        self.link_name = link_name


class AddPermissionError(AdapterError):
    """Raised when an unknown bot is reviewed without permission to add it."""
    pass


class CandidateResolutionError(AdapterError):
    """Raised when the full bot data for a first-time insert cannot be resolved."""
    pass


class StoreError(AdapterError):
    """Raised when the bots store fails an existence check, insert or update."""
    pass
