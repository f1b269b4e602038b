"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core and adapters expect so the app layer can build them safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FetchConfig:
    """Network boundary settings for the imageboard client."""

    board: str
    timeout: float
    user_agent: str


@dataclass(frozen=True)
class ViewerConfig:
    """Quote resolution and rendering settings."""

    max_depth: Optional[int]
    twitch_parent: str
