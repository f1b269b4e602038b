"""In-memory message store with idempotent merges (core domain).

The store owns every tracked lineage (thread), its messages, and its display
color. It can be backed by a slot storage port; when it is, ``init`` loads the
three persisted slots and every successful merge writes them back.

Single-writer: callers ingesting concurrently must serialize ``merge`` calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core.errors import InvalidMessageError
from core.models import Message
from core.ports import SlotStoragePort

LOGGER = logging.getLogger(__name__)

THREADS_KEY = "otkActiveThreads"
MESSAGES_KEY = "otkMessagesByThreadId"
COLORS_KEY = "otkThreadColors"

DEFAULT_PALETTE = (
    "#e6194B", "#3cb44b", "#ffe119", "#4363d8", "#f58231",
    "#911eb4", "#46f0f0", "#f032e6", "#bcf60c", "#fabebe",
    "#008080", "#e6beff", "#9A6324", "#fffac8", "#800000",
    "#aaffc3", "#808000", "#ffd8b1", "#000075", "#808080",
)
FALLBACK_COLOR = "#888888"
UNTITLED = "Untitled"

IncomingMessage = Union[Message, Mapping[str, Any]]


class MessageStore:
    """Lineage-grouped message collections with stable chronological order."""

    def __init__(
        self,
        slots: Optional[SlotStoragePort] = None,
        palette: Sequence[str] = DEFAULT_PALETTE,
    ) -> None:
        self._slots = slots
        self._palette = tuple(palette)
        self._lineages: List[int] = []
        self._messages: Dict[int, List[Message]] = {}
        self._colors: Dict[int, str] = {}
        self._index: Dict[int, Message] = {}

    # Lifecycle

    def init(self) -> None:
        """Load state from the persistent slots, replacing in-memory state."""

        self._reset()
        if self._slots is None:
            return

        raw_threads = self._slots.read(THREADS_KEY) or []
        raw_messages = self._slots.read(MESSAGES_KEY) or {}
        raw_colors = self._slots.read(COLORS_KEY) or {}

        for raw_id in raw_threads:
            self.track(int(raw_id))
        for raw_id, records in raw_messages.items():
            lineage_id = int(raw_id)
            self.track(lineage_id)
            self._merge_into(lineage_id, records)
        for raw_id, color in raw_colors.items():
            self._colors[int(raw_id)] = color

        LOGGER.info(
            "Loaded %s lineages with %s messages from storage",
            len(self._lineages),
            len(self._index),
        )

    def clear(self) -> None:
        """Drop all lineages, messages, and colors, including persisted slots."""

        self._reset()
        if self._slots is not None:
            for key in (THREADS_KEY, MESSAGES_KEY, COLORS_KEY):
                self._slots.delete(key)

    def save(self) -> None:
        """Write the three slots. No-op for an unbacked store."""

        if self._slots is None:
            return
        self._slots.write(THREADS_KEY, list(self._lineages))
        self._slots.write(
            MESSAGES_KEY,
            {
                str(lineage_id): [message.to_record() for message in messages]
                for lineage_id, messages in self._messages.items()
            },
        )
        self._slots.write(
            COLORS_KEY,
            {str(lineage_id): color for lineage_id, color in self._colors.items()},
        )

    def _reset(self) -> None:
        self._lineages = []
        self._messages = {}
        self._colors = {}
        self._index = {}

    # Lineages

    @property
    def lineage_ids(self) -> List[int]:
        return list(self._lineages)

    def track(self, lineage_id: int) -> bool:
        """Start tracking a lineage. Returns False if it was already tracked."""

        if lineage_id in self._lineages:
            return False
        self._lineages.append(lineage_id)
        return True

    def retain(self, found_ids: Iterable[int]) -> List[int]:
        """Keep lineages found upstream or holding messages; return the dropped ids.

        Messages are never dropped, so a lineage that disappears upstream keeps
        its history.
        """

        found = set(found_ids)
        kept: List[int] = []
        dropped: List[int] = []
        for lineage_id in self._lineages:
            if lineage_id in found or self._messages.get(lineage_id):
                kept.append(lineage_id)
            else:
                dropped.append(lineage_id)
        self._lineages = kept
        return dropped

    def color_for(self, lineage_id: int) -> str:
        """Return the lineage color, assigning the first unused palette entry once."""

        color = self._colors.get(lineage_id)
        if color is not None:
            return color
        used = set(self._colors.values())
        available = [candidate for candidate in self._palette if candidate not in used]
        color = available[0] if available else FALLBACK_COLOR
        self._colors[lineage_id] = color
        return color

    @property
    def colors(self) -> Dict[int, str]:
        return dict(self._colors)

    def messages_for(self, lineage_id: int) -> List[Message]:
        return list(self._messages.get(lineage_id, []))

    def title_for(self, lineage_id: int) -> str:
        messages = self._messages.get(lineage_id)
        if messages and messages[0].title:
            return messages[0].title
        return UNTITLED

    # Messages

    def merge(self, lineage_id: int, incoming: Iterable[IncomingMessage]) -> int:
        """Merge messages into a lineage, ignoring ids it already holds.

        Raw records are validated first; one invalid record rejects the whole
        batch before anything is stored. Returns the number of messages added.
        """

        validated = [self._validate(lineage_id, item) for item in incoming]
        self.track(lineage_id)
        added = self._merge_into(lineage_id, validated)
        if added:
            LOGGER.debug("Merged %s new messages into lineage %s", added, lineage_id)
        self.save()
        return added

    def find_by_id(self, message_id: int) -> Optional[Message]:
        """Return the message with this id; it carries its own ``lineage_id``."""

        return self._index.get(message_id)

    def all_chronological(self) -> List[Message]:
        """Every message of every tracked lineage, ordered by (timestamp, id)."""

        merged: List[Message] = []
        for lineage_id in self._lineages:
            merged.extend(self._messages.get(lineage_id, []))
        merged.sort(key=lambda message: message.sort_key)
        return merged

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._index

    @staticmethod
    def _validate(lineage_id: int, item: IncomingMessage) -> Message:
        if isinstance(item, Message):
            if item.lineage_id != lineage_id:
                raise InvalidMessageError(
                    f"Message {item.id} belongs to lineage {item.lineage_id}, not {lineage_id}"
                )
            return item
        return Message.from_record(item, lineage_id)

    def _merge_into(self, lineage_id: int, incoming: Iterable[IncomingMessage]) -> int:
        existing = self._messages.setdefault(lineage_id, [])
        known = {message.id for message in existing}
        added = 0
        for item in incoming:
            message = self._validate(lineage_id, item)
            if message.id in known:
                continue
            if message.id in self._index:
                # Ids are unique across lineages upstream; keep the first copy.
                LOGGER.warning(
                    "Message %s already stored in lineage %s; ignoring copy in lineage %s",
                    message.id,
                    self._index[message.id].lineage_id,
                    lineage_id,
                )
                continue
            existing.append(message)
            known.add(message.id)
            self._index[message.id] = message
            added += 1
        existing.sort(key=lambda message: message.sort_key)
        return added
