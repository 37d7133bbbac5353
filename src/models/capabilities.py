"""
Host capabilities consumed by the configuration core.

The core never touches the filesystem itself: the host supplies a Reader
(bootstrapping from an existing install), a Writer (export) and a Clock
(timestamps for the model's change history).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Reader(Protocol):
    def read_bytes(self, logical_path: str) -> bytes:
        """Return the content stored under ``logical_path``; raise FileNotFoundError if absent."""
        ...


class Writer(Protocol):
    def write(self, logical_path: str, content: str) -> None:
        ...


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
