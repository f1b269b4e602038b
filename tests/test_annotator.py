from __future__ import annotations

from core.annotator import Annotator, annotate, quote_targets
from core.entities import decode
from core.models import (
    EmbedKind,
    Hyperlink,
    MediaEmbed,
    PlainText,
    QuoteReference,
    segment_source,
)
from core.recognizers import LINK, QUOTE


def test_youtube_link_with_offset() -> None:
    segments = annotate("check https://youtu.be/abc123?t=65 out")
    assert segments == (
        PlainText("check "),
        MediaEmbed(
            kind=EmbedKind.YOUTUBE,
            media_id="abc123",
            url="https://youtu.be/abc123?t=65",
            start_seconds=65,
        ),
        PlainText(" out"),
    )


def test_youtube_is_never_wrapped_as_hyperlink() -> None:
    segments = annotate("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=1m30s and more")
    assert not any(isinstance(segment, Hyperlink) for segment in segments)
    embed = segments[0]
    assert isinstance(embed, MediaEmbed)
    assert embed.media_id == "dQw4w9WgXcQ"
    assert embed.start_seconds == 90


def test_empty_body_is_single_plain_text() -> None:
    assert annotate("") == (PlainText(""),)


def test_plain_body_passes_through() -> None:
    assert annotate("just words [ ( }") == (PlainText("just words [ ( }"),)


def test_entities_are_decoded_before_recognition() -> None:
    segments = annotate("&gt;&gt;123 I agree &amp; more")
    assert segments == (QuoteReference(123), PlainText(" I agree & more"))


def test_quote_references_in_body_order() -> None:
    segments = annotate(">>20\n>>10\nfirst\n>>20")
    assert quote_targets(segments) == [20, 10, 20]


def test_generic_link_excludes_trailing_punctuation() -> None:
    segments = annotate("see https://example.com/page.")
    assert segments == (PlainText("see "), Hyperlink("https://example.com/page"), PlainText("."))


def test_every_platform_is_recognized() -> None:
    body = "\n".join(
        [
            "https://x.com/someone/status/1234567890",
            "https://rumble.com/v4abcd-some-title.html",
            "https://clips.twitch.tv/FunnyClipName-abc_123",
            "https://www.twitch.tv/videos/987654?t=1h2m3s",
            "https://streamable.com/xyz789",
        ]
    )
    embeds = [segment for segment in annotate(body) if isinstance(segment, MediaEmbed)]
    assert [embed.kind for embed in embeds] == [
        EmbedKind.TWITTER,
        EmbedKind.RUMBLE,
        EmbedKind.TWITCH_CLIP,
        EmbedKind.TWITCH_VOD,
        EmbedKind.STREAMABLE,
    ]
    assert embeds[0].media_id == "1234567890"
    assert embeds[0].url == "https://x.com/someone/status/1234567890"
    assert embeds[1].media_id == "4abcd"
    assert embeds[2].media_id == "FunnyClipName-abc_123"
    assert embeds[3].media_id == "987654"
    assert embeds[3].start_seconds == 3723
    assert embeds[4].media_id == "xyz789"


def test_malformed_platform_url_falls_back_to_link() -> None:
    segments = annotate("https://youtube.com/channel/whatever")
    assert segments == (Hyperlink("https://youtube.com/channel/whatever"),)


def test_placeholder_shaped_text_is_plain_text() -> None:
    text = "__YOUTUBE_EMBED__[abc]__[]__"
    assert annotate(text) == (PlainText(text),)


def test_segments_reproduce_decoded_body() -> None:
    raw = (
        "&gt;&gt;555 look https://youtu.be/a-b_c?t=10, https://example.org/x?y=1 "
        "and https://streamable.com/q1 &lt;3 &#039;quoted&#039; &zzfake;"
    )
    segments = annotate(raw)
    assert "".join(segment_source(segment) for segment in segments) == decode(raw)


def test_custom_recognizer_order() -> None:
    annotator = Annotator([QUOTE, LINK])
    segments = annotator.annotate(">>1 https://youtu.be/abc")
    assert segments == (QuoteReference(1), PlainText(" "), Hyperlink("https://youtu.be/abc"))


def test_oversized_quote_number_stays_plain_text() -> None:
    body = ">>" + "1" * 5000
    assert annotate(body) == (PlainText(body),)
    assert annotate(">>12345 and >>" + "9" * 21) == (
        QuoteReference(12345),
        PlainText(" and >>" + "9" * 21),
    )
