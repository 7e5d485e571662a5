"""Errors raised by the sync engine."""

from __future__ import annotations


class SyncAbortedError(Exception):
    """The cycle cannot proceed: missing target folder, missing subfolder, ..."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
