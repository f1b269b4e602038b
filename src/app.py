"""Application entry point for the otkview thread tracker and viewer."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

import settings
from adapters.chan_client import ChanClient
from adapters.rendering import format_timestamp, render_page, render_segments
from adapters.sqlite_slots import SQLiteSlotStorage
from core.config import FetchConfig, ViewerConfig
from core.errors import FetchError
from core.models import QuoteNode
from core.resolver import QuoteResolver
from core.store import MessageStore
from core.tracker import ThreadTracker

NAME = "OTKVIEW"
FONT = "tarty-1"

console = Console()


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/otkview.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_store() -> MessageStore:
    slots = SQLiteSlotStorage(settings.DB_PATH)
    slots.init_db()
    store = MessageStore(slots)
    store.init()
    return store


def _build_tracker(store: MessageStore) -> ThreadTracker:
    fetch_config = FetchConfig(
        board=settings.BOARD,
        timeout=settings.FETCH_TIMEOUT,
        user_agent=settings.USER_AGENT,
    )
    return ThreadTracker(store, ChanClient(fetch_config), settings.KEYWORD)


def _refresh(clear: bool) -> int:
    store = _open_store()
    tracker = _build_tracker(store)
    try:
        report = tracker.clear_and_refresh() if clear else tracker.refresh()
    except FetchError:
        logging.getLogger(__name__).exception("Catalog scan failed")
        return 1
    console.print(
        f"Tracking {report.lineages_tracked} threads, "
        f"{report.messages_added} new messages"
    )
    if report.failed_lineages:
        console.print(f"[yellow]Failed threads: {', '.join(map(str, report.failed_lineages))}[/yellow]")
    return 0


def _threads() -> int:
    store = _open_store()
    colors = store.colors
    table = Table(title="Tracked threads")
    table.add_column("")
    table.add_column("Thread")
    table.add_column("Title")
    table.add_column("Started")
    table.add_column("Messages", justify="right")
    for lineage_id in store.lineage_ids:
        messages = store.messages_for(lineage_id)
        started = format_timestamp(messages[0].timestamp) if messages else ""
        table.add_row(
            Text("■", style=colors.get(lineage_id, "#888888")),
            str(lineage_id),
            store.title_for(lineage_id),
            started,
            str(len(messages)),
        )
    console.print(table)
    return 0


def _node_label(node: QuoteNode, colors: dict[int, str]) -> Text:
    message = node.message
    if node.is_cycle_marker:
        return Text(f"(circular quote to #{message.id})", style="dim italic")
    label = Text()
    if node.depth == 0:
        label.append("■ ", style=colors.get(message.lineage_id, "#888888"))
    label.append(f"#{message.id} {format_timestamp(message.timestamp)}", style="bold")
    body = render_segments(node.segments, "text").strip()
    if body:
        label.append(f"\n{body}")
    if message.attachment:
        label.append(f"\n[file: {message.attachment.filename}{message.attachment.extension}]", style="cyan")
    return label


def _add_children(tree: Tree, node: QuoteNode, colors: dict[int, str]) -> None:
    for child in node.children:
        branch = tree.add(_node_label(child, colors))
        _add_children(branch, child, colors)


def _view(html_path: Optional[str], max_depth: Optional[int]) -> int:
    store = _open_store()
    viewer_config = ViewerConfig(
        max_depth=max_depth if max_depth is not None else settings.MAX_QUOTE_DEPTH,
        twitch_parent=settings.TWITCH_PARENT,
    )
    resolver = QuoteResolver(store, max_depth=viewer_config.max_depth)
    nodes = resolver.feed()
    colors = store.colors

    if html_path:
        document = render_page(nodes, colors, settings.BOARD, viewer_config.twitch_parent)
        with open(html_path, "w", encoding="utf-8") as handle:
            handle.write(document)
        console.print(f"Wrote {len(nodes)} messages to {html_path}")
        return 0

    for node in nodes:
        tree = Tree(_node_label(node, colors))
        _add_children(tree, node, colors)
        console.print(tree)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="otkview")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("refresh", help="Scan the catalog and merge new messages")
    subparsers.add_parser("clear", help="Clear all stored threads, then refresh")
    subparsers.add_parser("threads", help="List tracked threads")
    view_parser = subparsers.add_parser("view", help="Show every message with its quotes")
    view_parser.add_argument("--html", dest="html_path", help="Write an HTML page instead of printing")
    view_parser.add_argument("--max-depth", type=int, default=None, help="Limit quote nesting")

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command in {"refresh", "clear"}:
        _print_banner()
        return _refresh(clear=args.command == "clear")
    if args.command == "threads":
        return _threads()
    if args.command == "view":
        return _view(args.html_path, args.max_depth)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
