"""Errors surfaced by the core to its callers."""

from __future__ import annotations


class InvalidMessageError(ValueError):
    """A message record violates the Message contract at the merge boundary."""


class FetchError(RuntimeError):
    """The network boundary failed to deliver catalog or thread data."""
