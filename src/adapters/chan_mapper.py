"""Imageboard-to-core record mapping adapter.

This keeps 4chan JSON API details out of the core pipeline. Comments keep
their character entities; decoding happens during annotation.
"""

from __future__ import annotations

import re
from typing import Any, Optional

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<.*?>", re.DOTALL)

UNTITLED = "Untitled"


def comment_to_body(comment: Optional[str]) -> str:
    """Convert post comment markup to a body: line breaks kept, tags dropped."""

    if not comment:
        return ""
    return _TAG_RE.sub("", _BR_RE.sub("\n", comment))


def _attachment_from_post(post: dict[str, Any]) -> Optional[dict[str, Any]]:
    if not post.get("filename") or post.get("tim") is None:
        return None
    return {
        "file_id": post["tim"],
        "extension": post.get("ext", ""),
        "filename": post["filename"],
        "width": post.get("w"),
        "height": post.get("h"),
        "thumb_width": post.get("tn_w"),
        "thumb_height": post.get("tn_h"),
    }


def records_from_thread(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Map a thread payload to message records.

    Every record inherits the opening post's subject as its title.
    """

    posts = payload.get("posts") or []
    if not posts:
        return []
    title = posts[0].get("sub") or UNTITLED

    records: list[dict[str, Any]] = []
    for post in posts:
        records.append(
            {
                "id": post.get("no"),
                "timestamp": post.get("time"),
                "body": comment_to_body(post.get("com")),
                "title": title,
                "attachment": _attachment_from_post(post),
            }
        )
    return records


def catalog_threads(payload: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten catalog pages into thread summaries ``{id, subject, comment}``."""

    threads: list[dict[str, Any]] = []
    for page in payload or []:
        for thread in page.get("threads", []):
            threads.append(
                {
                    "id": thread["no"],
                    "subject": thread.get("sub") or "",
                    "comment": thread.get("com") or "",
                }
            )
    return threads
