"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any imageboard-specific payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from core.errors import InvalidMessageError


def _require_int(record: Mapping[str, Any], key: str) -> int:
    value = record.get(key)
    # bool is an int subclass but never a valid id or timestamp.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidMessageError(f"Message field '{key}' must be an integer, got {value!r}")
    return value


def _optional_int(record: Mapping[str, Any], key: str) -> Optional[int]:
    value = record.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidMessageError(f"Attachment field '{key}' must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Attachment:
    """File attached to a post, addressed by the board's file id."""

    file_id: int
    extension: str
    filename: str
    width: Optional[int] = None
    height: Optional[int] = None
    thumb_width: Optional[int] = None
    thumb_height: Optional[int] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Attachment":
        if not isinstance(record, Mapping):
            raise InvalidMessageError(f"Attachment must be a mapping, got {type(record).__name__}")
        if record.get("file_id") is None:
            raise InvalidMessageError("Attachment is missing 'file_id'")
        return cls(
            file_id=_require_int(record, "file_id"),
            extension=str(record.get("extension") or ""),
            filename=str(record.get("filename") or ""),
            width=_optional_int(record, "width"),
            height=_optional_int(record, "height"),
            thumb_width=_optional_int(record, "thumb_width"),
            thumb_height=_optional_int(record, "thumb_height"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "extension": self.extension,
            "filename": self.filename,
            "width": self.width,
            "height": self.height,
            "thumb_width": self.thumb_width,
            "thumb_height": self.thumb_height,
        }


@dataclass(frozen=True)
class Message:
    """A single post, immutable once merged into the store."""

    id: int
    lineage_id: int
    timestamp: int
    body: str
    title: Optional[str] = None
    attachment: Optional[Attachment] = None

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.timestamp, self.id

    @classmethod
    def from_record(cls, record: Mapping[str, Any], lineage_id: int) -> "Message":
        """Validate a raw record and build a Message.

        Records come from the network boundary or from the persistent store and
        share the shape ``{id, timestamp, body, title?, attachment?}``. Missing
        ids or timestamps fail fast; a missing body is treated as empty.
        """

        if not isinstance(record, Mapping):
            raise InvalidMessageError(f"Message record must be a mapping, got {type(record).__name__}")

        message_id = _require_int(record, "id")
        timestamp = _require_int(record, "timestamp")
        body = record.get("body")
        if body is None:
            body = ""
        elif not isinstance(body, str):
            raise InvalidMessageError(f"Message {message_id} body must be a string")
        title = record.get("title")
        raw_attachment = record.get("attachment")
        attachment = Attachment.from_record(raw_attachment) if raw_attachment else None

        return cls(
            id=message_id,
            lineage_id=lineage_id,
            timestamp=timestamp,
            body=body,
            title=str(title) if title is not None else None,
            attachment=attachment,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "body": self.body,
            "title": self.title,
            "attachment": self.attachment.to_record() if self.attachment else None,
        }


class EmbedKind(str, Enum):
    YOUTUBE = "youtube"
    TWITTER = "twitter"
    RUMBLE = "rumble"
    TWITCH_CLIP = "twitch_clip"
    TWITCH_VOD = "twitch_vod"
    STREAMABLE = "streamable"


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Hyperlink:
    url: str


@dataclass(frozen=True)
class QuoteReference:
    target_id: int
    # Matched text, e.g. ">>0123".
    source: str = field(default="", compare=False)


@dataclass(frozen=True)
class MediaEmbed:
    """Structured media reference.

    ``media_id`` is the platform id used for embedding, ``url`` the text that
    was recognized, and ``start_seconds`` the optional start offset.
    """

    kind: EmbedKind
    media_id: str
    url: str
    start_seconds: Optional[int] = None


Segment = Union[PlainText, Hyperlink, QuoteReference, MediaEmbed]


def segment_source(segment: Segment) -> str:
    """Return the decoded body text a segment was recognized from."""

    if isinstance(segment, PlainText):
        return segment.text
    if isinstance(segment, Hyperlink):
        return segment.url
    if isinstance(segment, QuoteReference):
        return segment.source or f">>{segment.target_id}"
    return segment.url


class Truncation(str, Enum):
    """Why a quote node has no further children."""

    CYCLE = "cycle"
    DEPTH = "depth"


@dataclass(frozen=True)
class QuoteNode:
    """One message in a resolved quote tree.

    Children are the messages this message quotes, in the order the quotes
    appear in its body.
    """

    message: Message
    depth: int
    children: Tuple["QuoteNode", ...] = ()
    segments: Tuple[Segment, ...] = ()
    truncated: Optional[Truncation] = None

    @property
    def is_cycle_marker(self) -> bool:
        return self.truncated is Truncation.CYCLE

    def walk(self):
        """Yield this node and every descendant, pre-order."""

        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class RefreshReport:
    """Counts collected during one ingestion pass."""

    lineages_found: int = 0
    lineages_tracked: int = 0
    messages_added: int = 0
    failed_lineages: Tuple[int, ...] = field(default_factory=tuple)
