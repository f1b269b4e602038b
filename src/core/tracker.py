"""Thread tracking pipeline.

One refresh pass runs in a strict order:
1) Scan the catalog for threads matching the keyword
2) Track newly found lineages
3) Retain lineages that are still listed or already hold messages
4) Fetch each tracked lineage sequentially and merge its messages
5) Assign colors to every tracked lineage

This module is integration-agnostic. It only relies on the fetcher port and
the message store, so any board client can drive it.
"""

from __future__ import annotations

import logging
from typing import List

from core.errors import FetchError, InvalidMessageError
from core.models import RefreshReport
from core.ports import FetcherPort
from core.store import MessageStore

LOGGER = logging.getLogger(__name__)


class ThreadTracker:
    """Keeps a message store in sync with keyword-matching threads upstream."""

    def __init__(self, store: MessageStore, fetcher: FetcherPort, keyword: str) -> None:
        self._store = store
        self._fetcher = fetcher
        self._keyword = keyword.lower()

    def scan(self) -> List[int]:
        """Return ids of catalog threads whose subject or comment has the keyword."""

        found: List[int] = []
        for thread in self._fetcher.fetch_catalog():
            haystack = f"{thread.get('subject') or ''}{thread.get('comment') or ''}".lower()
            if self._keyword in haystack:
                found.append(int(thread["id"]))
        return found

    def refresh(self) -> RefreshReport:
        """Run one ingestion pass and persist the result."""

        found = self.scan()
        for lineage_id in found:
            if self._store.track(lineage_id):
                LOGGER.info("Tracking new thread %s", lineage_id)

        dropped = self._store.retain(found)
        if dropped:
            LOGGER.info("Stopped tracking %s empty threads", len(dropped))

        added = 0
        failed: List[int] = []
        for lineage_id in self._store.lineage_ids:
            try:
                records = self._fetcher.fetch_thread(lineage_id)
            except FetchError:
                LOGGER.exception("Failed to fetch thread %s", lineage_id)
                failed.append(lineage_id)
                continue
            if not records:
                continue
            try:
                added += self._store.merge(lineage_id, records)
            except InvalidMessageError:
                LOGGER.exception("Rejected malformed posts from thread %s", lineage_id)
                failed.append(lineage_id)

        for lineage_id in self._store.lineage_ids:
            self._store.color_for(lineage_id)
        self._store.save()

        report = RefreshReport(
            lineages_found=len(found),
            lineages_tracked=len(self._store.lineage_ids),
            messages_added=added,
            failed_lineages=tuple(failed),
        )
        LOGGER.info(
            "Refresh complete: found=%s, tracked=%s, added=%s, failed=%s",
            report.lineages_found,
            report.lineages_tracked,
            report.messages_added,
            len(report.failed_lineages),
        )
        return report

    def clear_and_refresh(self) -> RefreshReport:
        """Wipe the store, including persisted slots, then refresh from scratch."""

        self._store.clear()
        LOGGER.info("Cleared all tracked threads")
        return self.refresh()
