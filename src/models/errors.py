"""
Error taxonomy for the site configuration pipeline.
"""

from __future__ import annotations

from typing import Optional


class ConsoleError(Exception):
    """Base class for every error raised by the configuration core."""


class BadInput(ConsoleError):
    """Malformed or empty input buffer, or a strict-mode XML root mismatch."""


class LimitExceeded(ConsoleError):
    """
    A resource cap was tripped during import.

    Attributes:
        limit: The configured cap.
        observed: The count that exceeded it.
        sheet: Sheet name for per-sheet caps, None for site-wide caps.
    """

    def __init__(self, limit: int, observed: int, sheet: Optional[str] = None):
        self.limit = limit
        self.observed = observed
        self.sheet = sheet
        where = f"sheet '{sheet}'" if sheet else "site"
        super().__init__(f"{where} exceeds limit of {limit} (observed {observed})")


class InvalidOperation(ConsoleError):
    """API misuse against a SiteModel: unknown id, invariant-breaking edit."""


class SchemaMismatch(UserWarning):
    """Unknown root or missing children in a config document (logged, never raised)."""


class UnknownEntity(InvalidOperation):
    """An id that names no entity (of the expected type) in the SiteModel."""
