"""Ports (interfaces) used by the core.

Ports define the minimal contracts for persistence and network adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol


class SlotStoragePort(Protocol):
    """Named slots holding JSON-serializable values."""

    def read(self, key: str) -> Optional[Any]:
        ...

    def write(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class FetcherPort(Protocol):
    """Network operations required by the tracker.

    ``fetch_catalog`` returns thread summaries ``{id, subject, comment}``;
    ``fetch_thread`` returns message records ``{id, timestamp, body, title,
    attachment?}``. Both raise ``FetchError`` on failure.
    """

    def fetch_catalog(self) -> list[dict]:
        ...

    def fetch_thread(self, lineage_id: int) -> list[dict]:
        ...
