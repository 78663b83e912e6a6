"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for fetching and history adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from linkscope.core.models import ErrorRecord, FetchResult, HistoryEntry


class FetcherPort(Protocol):
    """Network retrieval required by the core pipeline."""

    async def fetch(self, url: str) -> FetchResult:
        ...


class HistoryPort(Protocol):
    """History operations required by the core pipeline."""

    def lookup(self, url: str) -> Optional[HistoryEntry]:
        ...

    def record(self, entry: HistoryEntry) -> None:
        ...

    def record_error(self, error: ErrorRecord) -> None:
        ...


class NullHistory:
    """History store used when persistence is disabled; remembers nothing."""

    def lookup(self, url: str) -> Optional[HistoryEntry]:
        return None

    def record(self, entry: HistoryEntry) -> None:
        return None

    def record_error(self, error: ErrorRecord) -> None:
        return None
