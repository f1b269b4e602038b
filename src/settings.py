"""Static configuration for otkview.

All user-editable settings (board, keyword, storage, viewer, logging) live in
a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# OTKVIEW_CONFIG points at an alternative config file; it must exist when set.
_CONFIG_OVERRIDE = os.getenv("OTKVIEW_CONFIG")
CONFIG_PATH = _CONFIG_OVERRIDE or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        if _CONFIG_OVERRIDE:
            raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Board and keyword decide which catalog threads get tracked.
BOARD = _CONFIG.get("board", "b")
KEYWORD = _CONFIG.get("keyword", "otk")

# Where to store the SQLite database holding the persisted slots.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(os.getenv("OTKVIEW_DB_PATH") or _storage.get("path", "otkview.db"))

# Network boundary settings.
_fetch = _CONFIG.get("fetch", {})
FETCH_TIMEOUT = float(_fetch.get("timeout", 10))
USER_AGENT = _fetch.get("user_agent", "otkview/0.1")

# Viewer settings:
# - MAX_QUOTE_DEPTH: optional cutoff for quote trees (null means unbounded)
# - TWITCH_PARENT: hostname Twitch requires for embedded players
_viewer = _CONFIG.get("viewer", {})
_max_depth = _viewer.get("max_depth")
MAX_QUOTE_DEPTH = int(_max_depth) if _max_depth is not None else None
TWITCH_PARENT = _viewer.get("twitch_parent", "boards.4chan.org")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
