"""Identity Allocator - hands out human-facing integer ids for new items."""

import logging
import threading
from typing import Iterable

from vocab_forge.core import VocabularyItem
from vocab_forge.io.local_cache import KEY_ID_SEQ, LocalCache

logger = logging.getLogger(__name__)


class IdentityAllocator:
    """Reserves consecutive ``int_id`` values.

    The first id of a reservation is ``max(existing int_id, high-water) + 1``.
    The high-water mark is persisted in the local cache so an id is not handed
    out twice by this client even after the item holding the maximum is
    deleted.

    This is not atomic across clients: the remote server allocates from its
    own current max, and two writers racing a batch create may both observe
    the same max. That race is accepted at this scale.
    """

    def __init__(self, cache: LocalCache) -> None:
        self._cache = cache
        self._lock = threading.Lock()

    @property
    def high_water(self) -> int:
        return self._cache.get_int(KEY_ID_SEQ, 0)

    def next_int_id(self, count: int, existing: Iterable[VocabularyItem]) -> int:
        """Reserve ``count`` ids and return the first one.

        Args:
            count: Number of consecutive ids to reserve (must be positive).
            existing: Items whose ids must not be reused (usually the cache).

        Raises:
            ValueError: If count is not positive.
        """
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")
        with self._lock:
            seen_max = max((item.int_id for item in existing), default=0)
            first = max(seen_max, self.high_water) + 1
            self._cache.put_json(KEY_ID_SEQ, first + count - 1)
        logger.debug("Reserved int ids %d..%d", first, first + count - 1)
        return first

    def observe(self, items: Iterable[VocabularyItem]) -> None:
        """Raise the high-water mark to cover ids seen from any tier."""
        with self._lock:
            seen_max = max((item.int_id for item in items), default=0)
            if seen_max > self.high_water:
                self._cache.put_json(KEY_ID_SEQ, seen_max)
