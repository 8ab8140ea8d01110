"""Seen-hash set shared by every snippet producer in one extraction run."""

from __future__ import annotations

import threading
from typing import Iterable

from devdose.models import CodeSnippet


class Deduplicator:
    """
    Owns the set of snippet hashes seen so far.

    ``check_and_insert`` is the only mutation and is atomic, so snippets can
    be fed from worker threads as well as the event loop.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def check_and_insert(self, hash_value: str) -> bool:
        """Record ``hash_value``; True if it had not been seen before."""
        with self._lock:
            if hash_value in self._seen:
                return False
            self._seen.add(hash_value)
            return True

    def deduplicate(self, snippets: Iterable[CodeSnippet]) -> list[CodeSnippet]:
        """Keep the first snippet of each hash, preserving input order."""
        return [snippet for snippet in snippets if self.check_and_insert(snippet.hash)]

    def __contains__(self, hash_value: object) -> bool:
        with self._lock:
            return hash_value in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
