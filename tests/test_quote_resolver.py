from __future__ import annotations

from adapters.rendering import render_node
from core.models import PlainText, QuoteReference, Truncation
from core.resolver import DEPTH_LIMIT, QuoteResolver
from core.store import MessageStore
from fakes import record


def _store(*lineages: tuple[int, list[dict]]) -> MessageStore:
    store = MessageStore()
    for lineage_id, records in lineages:
        store.merge(lineage_id, records)
    return store


def test_scenario_single_quote() -> None:
    store = _store((1, [record(10, 100, ">>11 hello"), record(11, 90, "world")]))
    resolver = QuoteResolver(store)

    node = resolver.resolve(store.find_by_id(10))

    assert node.message.id == 10
    assert node.depth == 0
    assert node.segments == (QuoteReference(11), PlainText(" hello"))
    assert [child.message.id for child in node.children] == [11]
    assert node.children[0].depth == 1
    assert node.children[0].children == ()


def test_mutual_quotes_are_truncated() -> None:
    store = _store((1, [record(1, 1, ">>2 a"), record(2, 2, ">>1 b")]))
    node = QuoteResolver(store).resolve(store.find_by_id(1))

    quoted = node.children[0]
    assert quoted.message.id == 2
    marker = quoted.children[0]
    assert marker.message.id == 1
    assert marker.truncated is Truncation.CYCLE
    assert marker.children == ()
    assert max(item.depth for item in node.walk()) == 2


def test_self_quote_is_truncated() -> None:
    store = _store((1, [record(5, 1, ">>5 me")]))
    node = QuoteResolver(store).resolve(store.find_by_id(5))
    assert len(node.children) == 1
    assert node.children[0].is_cycle_marker


def test_no_node_repeats_an_ancestor() -> None:
    store = _store(
        (1, [record(1, 1, ">>2 >>3"), record(2, 2, ">>3 >>1"), record(3, 3, ">>1 >>2")]),
    )
    root = QuoteResolver(store).resolve(store.find_by_id(1))

    def check(node, ancestors: frozenset) -> None:
        if node.is_cycle_marker:
            assert node.message.id in ancestors
            return
        assert node.message.id not in ancestors
        for child in node.children:
            check(child, ancestors | {node.message.id})

    check(root, frozenset())


def test_dangling_reference_is_skipped() -> None:
    store = _store((1, [record(1, 1, ">>999 >>2 gone"), record(2, 2, "here")]))
    node = QuoteResolver(store).resolve(store.find_by_id(1))
    assert [child.message.id for child in node.children] == [2]


def test_children_follow_quote_order_across_lineages() -> None:
    store = _store(
        (1, [record(1, 10, ">>20\n>>2 both")]),
        (2, [record(2, 1, "a")]),
        (3, [record(20, 2, "b")]),
    )
    node = QuoteResolver(store).resolve(store.find_by_id(1))
    assert [child.message.id for child in node.children] == [20, 2]
    assert node.children[0].message.lineage_id == 3


def test_max_depth_cuts_tree() -> None:
    store = _store((1, [record(1, 1, ">>2"), record(2, 2, ">>3"), record(3, 3, "end")]))
    resolver = QuoteResolver(store, max_depth=1)

    node = resolver.resolve(store.find_by_id(1))
    child = node.children[0]
    assert child.message.id == 2
    assert child.children == ()
    assert child.truncated is Truncation.DEPTH

    unlimited = resolver.resolve(store.find_by_id(1), max_depth=5)
    assert unlimited.children[0].children[0].message.id == 3


def test_feed_resolves_every_message_oldest_first() -> None:
    store = _store((1, [record(10, 100, ">>11 hello"), record(11, 90, "world")]))
    nodes = QuoteResolver(store).feed()
    assert [node.message.id for node in nodes] == [11, 10]
    assert all(node.depth == 0 for node in nodes)


def test_long_quote_chain_is_cut_at_depth_limit() -> None:
    chain = [record(0, 0, "start")]
    chain.extend(record(i, i, f">>{i - 1}") for i in range(1, 1500))
    store = _store((1, chain))

    node = QuoteResolver(store).resolve(store.find_by_id(1499))

    nodes = list(node.walk())
    assert len(nodes) == DEPTH_LIMIT + 1
    deepest = nodes[-1]
    assert deepest.depth == DEPTH_LIMIT
    assert deepest.truncated is Truncation.DEPTH
    assert deepest.children == ()

    assert render_node(node, {}, "text").count("#") == DEPTH_LIMIT + 1
    assert render_node(node, {}, "html").count("class=\"post ") == DEPTH_LIMIT + 1


def test_configured_depth_cannot_exceed_limit() -> None:
    chain = [record(0, 0, "start")]
    chain.extend(record(i, i, f">>{i - 1}") for i in range(1, 400))
    store = _store((1, chain))

    node = QuoteResolver(store, max_depth=10_000).resolve(store.find_by_id(399))
    assert max(item.depth for item in node.walk()) == DEPTH_LIMIT
