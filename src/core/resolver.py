"""Quote graph resolution (core domain).

A message's children are the messages it quotes, resolved depth-first in the
order the quotes appear. Cycles are cut with a marker node, dangling quotes
are skipped, and nothing here raises.
"""

from __future__ import annotations

from typing import AbstractSet, Dict, List, Optional, Tuple

from core.annotator import Annotator, quote_targets
from core.models import Message, QuoteNode, Segment, Truncation
from core.store import MessageStore

# Nesting ceiling applied even when no max_depth is configured; deeper chains
# end in a DEPTH marker.
DEPTH_LIMIT = 200


class QuoteResolver:
    """Builds acyclic quote trees over a message store."""

    def __init__(
        self,
        store: MessageStore,
        annotator: Optional[Annotator] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        self._store = store
        self._annotator = annotator or Annotator()
        self._max_depth = max_depth
        # Messages are immutable, so annotations can be reused across trees.
        self._segments: Dict[int, Tuple[Segment, ...]] = {}

    def segments_for(self, message: Message) -> Tuple[Segment, ...]:
        segments = self._segments.get(message.id)
        if segments is None:
            segments = self._annotator.annotate(message.body)
            self._segments[message.id] = segments
        return segments

    def resolve(
        self,
        message: Message,
        ancestor_ids: AbstractSet[int] = frozenset(),
        max_depth: Optional[int] = None,
    ) -> QuoteNode:
        """Resolve ``message`` and everything it quotes into a tree.

        ``ancestor_ids`` are the ids on the path above ``message``; its depth is
        the length of that path. ``max_depth`` overrides the resolver default and
        is always capped at ``DEPTH_LIMIT``.
        """

        limit = self._max_depth if max_depth is None else max_depth
        limit = DEPTH_LIMIT if limit is None else min(limit, DEPTH_LIMIT)
        return self._resolve(message, frozenset(ancestor_ids), limit)

    def _resolve(
        self,
        message: Message,
        ancestor_ids: frozenset,
        limit: int,
    ) -> QuoteNode:
        depth = len(ancestor_ids)
        if message.id in ancestor_ids:
            return QuoteNode(message=message, depth=depth, truncated=Truncation.CYCLE)

        segments = self.segments_for(message)
        targets = quote_targets(segments)
        if depth >= limit:
            truncated = Truncation.DEPTH if self._has_resolvable(targets) else None
            return QuoteNode(message=message, depth=depth, segments=segments, truncated=truncated)

        path = ancestor_ids | {message.id}
        children: List[QuoteNode] = []
        for target_id in targets:
            quoted = self._store.find_by_id(target_id)
            if quoted is None:
                continue
            children.append(self._resolve(quoted, path, limit))

        return QuoteNode(
            message=message,
            depth=depth,
            children=tuple(children),
            segments=segments,
        )

    def _has_resolvable(self, targets: List[int]) -> bool:
        return any(self._store.find_by_id(target_id) is not None for target_id in targets)

    def feed(self) -> List[QuoteNode]:
        """Resolve every stored message, oldest first."""

        return [self.resolve(message) for message in self._store.all_chronological()]
