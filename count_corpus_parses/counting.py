from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from count_corpus_parses.entities import CountedEntity
from count_corpus_parses.store import CounterStore

logger = logging.getLogger(__name__)


class EntityCounter:
    """
    Increment-and-persist for counted entities.

    The first time a key is touched in this process its current value is
    fetched from the store (0 when never counted); after that only the cached
    value is used and every increment is written through immediately.

    Consistency is weak across processes: the store is read once per key per
    process, so an increment made by another process after that read is
    overwritten by the next persist here. Same-key races are rare over a large
    key space, but they do lose counts.
    """

    def __init__(self, store: CounterStore) -> None:
        self.store = store
        self._cache: Dict[Tuple, int] = {}
        self.fetches = 0

    def count_one(self, entity: CountedEntity) -> int:
        key = entity.key()
        current = self._cache.get(key)
        if current is None:
            fetched = self.store.fetch(key)
            self.fetches += 1
            current = 0 if fetched is None else int(fetched)
            self._cache[key] = current
        new_count = current + 1
        # StoreError propagates; the cache only advances once the write landed.
        self.store.persist(key, new_count)
        self._cache[key] = new_count
        return new_count

    def cached_count(self, entity: CountedEntity) -> Optional[int]:
        return self._cache.get(entity.key())

    def __len__(self) -> int:
        return len(self._cache)
