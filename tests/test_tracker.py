from __future__ import annotations

import pytest

from core.errors import FetchError
from core.store import MessageStore
from core.tracker import ThreadTracker
from fakes import FakeFetcher, FakeSlots, record


def _catalog(*threads: tuple[int, str, str]) -> list[dict]:
    return [{"id": thread_id, "subject": subject, "comment": comment} for thread_id, subject, comment in threads]


def test_scan_matches_keyword_case_insensitively() -> None:
    fetcher = FakeFetcher(
        _catalog((1, "OTK thread", ""), (2, "", "welcome to otk"), (3, "other", "nothing")),
        {},
    )
    tracker = ThreadTracker(MessageStore(), fetcher, "otk")
    assert tracker.scan() == [1, 2]


def test_refresh_merges_and_persists() -> None:
    slots = FakeSlots()
    store = MessageStore(slots)
    fetcher = FakeFetcher(
        _catalog((1, "OTK", "")),
        {1: [record(10, 100, ">>11 hello", "OTK"), record(11, 90, "world", "OTK")]},
    )
    report = ThreadTracker(store, fetcher, "otk").refresh()

    assert report.lineages_found == 1
    assert report.messages_added == 2
    assert store.title_for(1) == "OTK"
    assert store.colors == {1: store.color_for(1)}

    reloaded = MessageStore(slots)
    reloaded.init()
    assert [message.id for message in reloaded.all_chronological()] == [11, 10]


def test_repeated_refresh_is_idempotent() -> None:
    store = MessageStore()
    fetcher = FakeFetcher(_catalog((1, "otk", "")), {1: [record(1, 1), record(2, 2)]})
    tracker = ThreadTracker(store, fetcher, "otk")
    tracker.refresh()
    before = store.all_chronological()

    report = tracker.refresh()
    assert report.messages_added == 0
    assert store.all_chronological() == before


def test_vanished_thread_keeps_history() -> None:
    store = MessageStore()
    fetcher = FakeFetcher(_catalog((1, "otk", "")), {1: [record(1, 1, "old")]})
    tracker = ThreadTracker(store, fetcher, "otk")
    tracker.refresh()

    fetcher.catalog = []
    fetcher.threads = {}
    tracker.refresh()
    assert store.lineage_ids == [1]
    assert store.find_by_id(1).body == "old"


def test_failed_thread_is_reported_and_skipped() -> None:
    store = MessageStore()
    fetcher = FakeFetcher(
        _catalog((1, "otk", ""), (2, "otk", "")),
        {2: [record(20, 1)]},
        failing={1},
    )
    report = ThreadTracker(store, fetcher, "otk").refresh()
    assert report.failed_lineages == (1,)
    assert store.find_by_id(20) is not None


def test_catalog_failure_propagates() -> None:
    class BrokenFetcher(FakeFetcher):
        def fetch_catalog(self) -> list[dict]:
            raise FetchError("catalog down")

    tracker = ThreadTracker(MessageStore(), BrokenFetcher([], {}), "otk")
    with pytest.raises(FetchError):
        tracker.refresh()


def test_clear_and_refresh_starts_over() -> None:
    slots = FakeSlots()
    store = MessageStore(slots)
    store.merge(5, [record(50, 1)])
    fetcher = FakeFetcher(_catalog((1, "otk", "")), {1: [record(1, 1)]})

    ThreadTracker(store, fetcher, "otk").clear_and_refresh()
    assert store.lineage_ids == [1]
    assert store.find_by_id(50) is None


def test_malformed_thread_is_reported_and_skipped() -> None:
    slots = FakeSlots()
    store = MessageStore(slots)
    fetcher = FakeFetcher(
        _catalog((1, "otk", ""), (2, "otk", "")),
        {
            1: [record(10, 1), {"id": None, "timestamp": 2, "body": "no id"}],
            2: [record(20, 3)],
        },
    )
    report = ThreadTracker(store, fetcher, "otk").refresh()

    assert report.failed_lineages == (1,)
    assert report.messages_added == 1
    assert store.find_by_id(10) is None
    assert store.find_by_id(20) is not None
    assert set(store.colors) == {1, 2}

    reloaded = MessageStore(slots)
    reloaded.init()
    assert set(reloaded.colors) == {1, 2}
