"""HTML character entity decoding (core domain)."""

from __future__ import annotations

import html


def decode(text: str) -> str:
    """Decode character entities the way an HTML5 parser would.

    Unknown entities such as ``&notanentity;`` pass through unchanged.
    """

    if "&" not in text:
        return text
    return html.unescape(text)
