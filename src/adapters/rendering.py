"""Shared rendering helpers for annotated bodies and quote trees.

Keeping rendering here prevents drift between the terminal and HTML views
and keeps embeds consistent regardless of output.
"""

from __future__ import annotations

from datetime import datetime, timezone
import html
from typing import Iterable, Mapping, Optional, Tuple

from core.models import (
    Attachment,
    EmbedKind,
    Hyperlink,
    MediaEmbed,
    PlainText,
    QuoteNode,
    QuoteReference,
    Segment,
)

DEFAULT_TWITCH_PARENT = "boards.4chan.org"
MEDIA_ROOT = "https://i.4cdn.org"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
VIDEO_EXTENSIONS = (".webm", ".mp4")

_IFRAME_STYLE = "width: 100%; min-height: 360px; aspect-ratio: 16 / 9; max-width: 640px; border: none;"


def format_twitch_time(total_seconds: Optional[int]) -> Optional[str]:
    """Return Twitch's ``00h01m30s`` offset format, or None for no offset."""

    if total_seconds is None or total_seconds <= 0:
        return None
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}h{minutes:02d}m{seconds:02d}s"


def format_timestamp(timestamp: int) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc).astimezone()
    return moment.strftime("%H:%M:%S %d-%m-%Y")


def embed_src(embed: MediaEmbed, twitch_parent: str = DEFAULT_TWITCH_PARENT) -> str:
    """Return the player URL for an embed; tweets link to the tweet itself."""

    if embed.kind is EmbedKind.YOUTUBE:
        src = f"https://www.youtube.com/embed/{embed.media_id}"
        if embed.start_seconds:
            src += f"?start={embed.start_seconds}"
        return src
    if embed.kind is EmbedKind.RUMBLE:
        return f"https://rumble.com/embed/{embed.media_id}/?pub=4"
    if embed.kind is EmbedKind.TWITCH_CLIP:
        return f"https://clips.twitch.tv/embed?clip={embed.media_id}&parent={twitch_parent}&autoplay=false"
    if embed.kind is EmbedKind.TWITCH_VOD:
        src = f"https://player.twitch.tv/?video={embed.media_id}&parent={twitch_parent}&autoplay=false"
        offset = format_twitch_time(embed.start_seconds)
        if offset:
            src += f"&t={offset}"
        return src
    if embed.kind is EmbedKind.STREAMABLE:
        return f"https://streamable.com/o/{embed.media_id}?loop=false"
    return embed.url


def attachment_urls(attachment: Attachment, board: str) -> Tuple[str, str]:
    """Return (thumbnail_url, full_url) for an attachment on a board."""

    thumb = f"{MEDIA_ROOT}/{board}/{attachment.file_id}s.jpg"
    full = f"{MEDIA_ROOT}/{board}/{attachment.file_id}{attachment.extension}"
    return thumb, full


def _render_segment_html(segment: Segment, twitch_parent: str) -> str:
    if isinstance(segment, PlainText):
        return html.escape(segment.text)
    if isinstance(segment, Hyperlink):
        safe = html.escape(segment.url)
        return f'<a href="{safe}" target="_blank" rel="noopener noreferrer">{safe}</a>'
    if isinstance(segment, QuoteReference):
        target = segment.target_id
        return f'<a href="#p{target}" class="quote" data-postid="{target}">&gt;&gt;{target}</a>'

    src = html.escape(embed_src(segment, twitch_parent))
    if segment.kind is EmbedKind.TWITTER:
        safe_url = html.escape(segment.url)
        return (
            f'<div class="twitter-embed" data-tweet-id="{html.escape(segment.media_id)}">'
            f'<a href="{safe_url}" target="_blank" rel="noopener noreferrer">Tweet: {safe_url}</a></div>'
        )
    return f'<div class="embed embed-{segment.kind.value}"><iframe src="{src}" style="{_IFRAME_STYLE}" allowfullscreen></iframe></div>'


def _render_segment_text(segment: Segment) -> str:
    if isinstance(segment, PlainText):
        return segment.text
    if isinstance(segment, Hyperlink):
        return segment.url
    if isinstance(segment, QuoteReference):
        return f">>{segment.target_id}"
    label = segment.kind.value.replace("_", " ")
    offset = f" @{segment.start_seconds}s" if segment.start_seconds else ""
    return f"[{label}: {segment.media_id}{offset}]"


def render_segments(
    segments: Iterable[Segment],
    mode: str,
    twitch_parent: str = DEFAULT_TWITCH_PARENT,
) -> str:
    """Return the segments rendered for the requested mode."""

    if mode == "html":
        return "".join(_render_segment_html(segment, twitch_parent) for segment in segments)
    if mode == "text":
        return "".join(_render_segment_text(segment) for segment in segments)
    raise ValueError(f"Unsupported render mode: {mode}")


def _attachment_html(attachment: Attachment, board: str) -> str:
    thumb, full = attachment_urls(attachment, board)
    name = html.escape(attachment.filename + attachment.extension)
    extension = attachment.extension.lower()
    if extension in IMAGE_EXTENSIONS or extension in VIDEO_EXTENSIONS:
        return (
            f'<a class="attachment" href="{html.escape(full)}" target="_blank" rel="noopener noreferrer">'
            f'<img src="{html.escape(thumb)}" alt="{name}" loading="lazy"></a>'
        )
    return f'<span class="attachment">[Unsupported file type: {html.escape(attachment.extension)}]</span>'


def _render_node_html(
    node: QuoteNode,
    colors: Mapping[int, str],
    board: str,
    twitch_parent: str,
) -> str:
    message = node.message
    if node.is_cycle_marker:
        return f"<!-- Skipping circular quote to post {message.id} -->"

    parts = [f'<div class="post depth-{node.depth % 2}" data-message-id="{message.id}">']
    parts.extend(_render_node_html(child, colors, board, twitch_parent) for child in node.children)
    if node.depth == 0:
        color = html.escape(colors.get(message.lineage_id, "#888888"))
        parts.append(f'<div class="lineage" style="background-color: {color};"></div>')
    parts.append(
        f'<div class="header" id="p{message.id}">#{message.id} {html.escape(format_timestamp(message.timestamp))}</div>'
    )
    parts.append(f'<div class="body">{render_segments(node.segments, "html", twitch_parent)}</div>')
    if message.attachment:
        parts.append(_attachment_html(message.attachment, board))
    parts.append("</div>")
    return "".join(parts)


def _render_node_text(node: QuoteNode) -> list[str]:
    indent = "    " * node.depth
    message = node.message
    if node.is_cycle_marker:
        return [f"{indent}(circular quote to #{message.id})"]

    lines: list[str] = []
    for child in node.children:
        lines.extend(_render_node_text(child))
    lines.append(f"{indent}#{message.id} {format_timestamp(message.timestamp)}")
    body = render_segments(node.segments, "text")
    lines.extend(f"{indent}{line}" for line in body.splitlines() or [""])
    if message.attachment:
        lines.append(f"{indent}[file: {message.attachment.filename}{message.attachment.extension}]")
    return lines


def render_node(
    node: QuoteNode,
    colors: Mapping[int, str],
    mode: str,
    board: str = "b",
    twitch_parent: str = DEFAULT_TWITCH_PARENT,
) -> str:
    """Render a quote tree; quoted messages come before the quoting body."""

    if mode == "html":
        return _render_node_html(node, colors, board, twitch_parent)
    if mode == "text":
        return "\n".join(_render_node_text(node))
    raise ValueError(f"Unsupported render mode: {mode}")


def render_page(
    nodes: Iterable[QuoteNode],
    colors: Mapping[int, str],
    board: str = "b",
    twitch_parent: str = DEFAULT_TWITCH_PARENT,
    title: str = "otkview",
) -> str:
    """Render a standalone HTML document for a whole feed."""

    body = "\n".join(render_node(node, colors, "html", board, twitch_parent) for node in nodes)
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>{html.escape(title)}</title>"
        "<style>"
        "body{background:#fff4de;font-family:Verdana,sans-serif;font-size:14px;padding:10px 20px;}"
        ".post{border-radius:4px;padding:6px 8px;margin-bottom:8px;background:#fff;}"
        ".post.depth-1{background:rgba(0,0,0,0.05);}"
        ".lineage{width:15px;height:40px;border-radius:3px;float:left;margin-right:10px;}"
        ".header{font-size:12px;color:#555;}"
        ".body{white-space:pre-wrap;}"
        "</style></head><body>\n"
        f"{body}\n"
        "</body></html>\n"
    )
