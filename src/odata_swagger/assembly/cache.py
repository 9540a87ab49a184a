"""In-memory cache of assembled documents."""

import logging
from threading import Lock
from typing import Callable, Hashable

from odata_swagger.model.document import Document

logger = logging.getLogger(__name__)


class DocumentCache:
    """Caches one document per key.

    The key is expected to capture the configuration identity (API version
    and configuration revision). Computation happens under the lock, so
    concurrent misses for the same key compute once. Hits hand out deep
    copies: callers may mutate what they get without touching the cache.
    """

    def __init__(self):
        self._entries: dict[Hashable, Document] = {}
        self._lock = Lock()

    def get_or_compute(self, key: Hashable, compute: Callable[[], Document]) -> Document:
        with self._lock:
            document = self._entries.get(key)
            if document is None:
                logger.debug("Document cache miss for %r", key)
                document = compute()
                self._entries[key] = document
            else:
                logger.debug("Document cache hit for %r", key)
            return document.model_copy(deep=True)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def discard_where(self, predicate: Callable[[Hashable], bool]) -> None:
        """Drop every entry whose key satisfies *predicate*."""
        with self._lock:
            for key in [k for k in self._entries if predicate(k)]:
                logger.debug("Document cache evicting %r", key)
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
