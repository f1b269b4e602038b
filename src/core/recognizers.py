"""Pattern library for body annotation (core domain).

Each recognizer bundles the three steps the annotator needs for one kind of
construct: a compiled pattern, an extractor that turns a regex match into
placeholder parameters, and a builder that materializes the final segment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any, Mapping, Optional

from core.models import EmbedKind, Hyperlink, MediaEmbed, QuoteReference, Segment

# Query tail shared by the YouTube and Twitch VOD patterns; captured so the
# start offset can be read from it.
_PARAMS = r"(?P<params>(?:[?&][a-zA-Z0-9_=&%.:+-]*)*)"
_QUERY = r"(?:\?[^\s\"'<>]*)?"

_TIME_PARAM_RE = re.compile(r"[?&](?:t|start)=([0-9hms]+)")
_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")
_SECONDS_RE = re.compile(r"(\d+)s")


def parse_time_param(value: Optional[str]) -> Optional[int]:
    """Parse ``90`` or ``1h2m3s`` style offsets into seconds.

    Zero, negative, or unparseable values normalize to ``None``.
    """

    if not value:
        return None
    if value.isdigit():
        total = int(value)
    else:
        total = 0
        hours = _HOURS_RE.search(value)
        if hours:
            total += int(hours.group(1)) * 3600
        minutes = _MINUTES_RE.search(value)
        if minutes:
            total += int(minutes.group(1)) * 60
        seconds = _SECONDS_RE.search(value)
        if seconds:
            total += int(seconds.group(1))
    return total if total > 0 else None


def offset_from_params(params: Optional[str]) -> Optional[int]:
    """Return the ``t=``/``start=`` offset found in a query tail, if any."""

    if not params:
        return None
    match = _TIME_PARAM_RE.search(params)
    if not match:
        return None
    return parse_time_param(match.group(1))


@dataclass(frozen=True)
class Placeholder:
    """Opaque result of the recognition phase, expanded during materialization."""

    recognizer: str
    source: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Recognition:
    """A successful try-match: the claimed span and its placeholder."""

    start: int
    end: int
    placeholder: Placeholder


class Recognizer:
    """Base recognizer: search for a pattern and describe what it found."""

    name = "recognizer"
    pattern: re.Pattern

    def try_match(self, text: str, pos: int = 0) -> Optional[Recognition]:
        match = self.pattern.search(text, pos)
        if match is None:
            return None
        placeholder = Placeholder(
            recognizer=self.name,
            source=match.group(0),
            params=self.extract(match),
        )
        return Recognition(start=match.start(), end=match.end(), placeholder=placeholder)

    def extract(self, match: re.Match) -> dict[str, Any]:
        return {}

    def materialize(self, placeholder: Placeholder) -> Segment:
        raise NotImplementedError


class EmbedRecognizer(Recognizer):
    """Recognizer for a media platform URL.

    ``strip_prefix`` removes a leading type marker from the captured id before
    embedding (Rumble ids start with ``v`` in page URLs but not in embeds).
    """

    def __init__(
        self,
        name: str,
        kind: EmbedKind,
        pattern: str,
        *,
        with_offset: bool = False,
        strip_prefix: str = "",
    ) -> None:
        self.name = name
        self.kind = kind
        self.pattern = re.compile(pattern)
        self._with_offset = with_offset
        self._strip_prefix = strip_prefix

    def extract(self, match: re.Match) -> dict[str, Any]:
        media_id = match.group("id")
        if self._strip_prefix and media_id.startswith(self._strip_prefix):
            media_id = media_id[len(self._strip_prefix):]
        start_seconds = offset_from_params(match.group("params")) if self._with_offset else None
        return {"media_id": media_id, "start_seconds": start_seconds}

    def materialize(self, placeholder: Placeholder) -> Segment:
        return MediaEmbed(
            kind=self.kind,
            media_id=placeholder.params["media_id"],
            url=placeholder.source,
            start_seconds=placeholder.params.get("start_seconds"),
        )


class LinkRecognizer(Recognizer):
    """Generic http(s) link; trailing punctuation stays outside the link."""

    name = "link"
    pattern = re.compile(r"https?://[^\s<>\"']+[^\s<>\"'.?!,:;)]")

    def materialize(self, placeholder: Placeholder) -> Segment:
        return Hyperlink(url=placeholder.source)


class QuoteRecognizer(Recognizer):
    """``>>123`` style reference to another post."""

    name = "quote"
    # Ids longer than any real post number stay plain text.
    pattern = re.compile(r">>(\d{1,20})(?!\d)")

    def extract(self, match: re.Match) -> dict[str, Any]:
        return {"target_id": int(match.group(1))}

    def materialize(self, placeholder: Placeholder) -> Segment:
        return QuoteReference(target_id=placeholder.params["target_id"], source=placeholder.source)


YOUTUBE = EmbedRecognizer(
    "youtube",
    EmbedKind.YOUTUBE,
    r"https?://(?:(?:www\.|m\.)?youtube\.com/watch\?v=|youtu\.be/)(?P<id>[a-zA-Z0-9_-]+)" + _PARAMS,
    with_offset=True,
)
TWITTER = EmbedRecognizer(
    "twitter",
    EmbedKind.TWITTER,
    r"https?://(?:www\.|mobile\.)?(?:twitter\.com|x\.com)/[a-zA-Z0-9_]+/status/(?P<id>[0-9]+)" + _QUERY,
)
RUMBLE = EmbedRecognizer(
    "rumble",
    EmbedKind.RUMBLE,
    r"https?://rumble\.com/(?:embed/)?(?P<id>v[a-zA-Z0-9]+)(?:-[^\s\"'>?&.]*)?(?:\.html)?" + _QUERY,
    strip_prefix="v",
)
TWITCH_CLIP = EmbedRecognizer(
    "twitch_clip",
    EmbedKind.TWITCH_CLIP,
    r"https?://(?:clips\.twitch\.tv/|(?:www\.)?twitch\.tv/[a-zA-Z0-9_]+/clip/)(?P<id>[a-zA-Z0-9_-]+)" + _QUERY,
)
TWITCH_VOD = EmbedRecognizer(
    "twitch_vod",
    EmbedKind.TWITCH_VOD,
    r"https?://(?:www\.)?twitch\.tv/videos/(?P<id>[0-9]+)" + _PARAMS,
    with_offset=True,
)
STREAMABLE = EmbedRecognizer(
    "streamable",
    EmbedKind.STREAMABLE,
    r"https?://streamable\.com/(?P<id>[a-zA-Z0-9]+)" + _QUERY,
)
LINK = LinkRecognizer()
QUOTE = QuoteRecognizer()

# Priority order matters: a span claimed by an earlier recognizer is never
# offered to a later one.
DEFAULT_RECOGNIZERS = (
    YOUTUBE,
    TWITTER,
    RUMBLE,
    TWITCH_CLIP,
    TWITCH_VOD,
    STREAMABLE,
    LINK,
    QUOTE,
)
