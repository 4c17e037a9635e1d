"""
In-process cache of query embeddings.

Keys are normalized query text, values are embedding vectors. The cache is
safe to share between concurrent requests and optionally bounded with
least-recently-used eviction.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """Thread-safe mapping from normalized query text to embedding vector."""

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, text: str) -> list[float] | None:
        with self._lock:
            vector = self._entries.get(text)
            if vector is None:
                return None
            self._entries.move_to_end(text)
            return list(vector)

    def put(self, text: str, vector: list[float]) -> None:
        with self._lock:
            self._entries[text] = list(vector)
            self._entries.move_to_end(text)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted cached embedding for %r", evicted)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d cached embeddings", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._entries
