"""Session-wide memoized mapping acquisition.

The first ensure_loaded() call starts the source load and stores the pending
task; concurrent callers await the same task. A resolved mapping is kept for
the life of the cache. A failed load is forgotten so the next call retries.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import List, Optional

from .errors import EmptyMappingError, LoadError
from .models import CardMappingEntry, MappingSet
from .sources import MappingSource
from .utils.rng import draw_three

log = logging.getLogger("lostitem.mapping_cache")


class MappingCache:
    def __init__(self, source: MappingSource):
        self.source = source
        self._mapping: Optional[MappingSet] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def loaded(self) -> bool:
        return self._mapping is not None

    @property
    def mapping(self) -> MappingSet:
        return self._mapping if self._mapping is not None else ()

    async def ensure_loaded(self) -> MappingSet:
        if self._mapping is not None:
            return self._mapping
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        # shield: a cancelled waiter must not cancel the shared load
        return await asyncio.shield(self._pending)

    async def _load(self) -> MappingSet:
        log.info("loading mapping from %s source", self.source.kind)
        try:
            mapping = await self.source.load()
        except LoadError as e:
            self._pending = None
            log.warning("mapping load failed: %s", e)
            raise
        except Exception as e:
            self._pending = None
            log.exception("mapping load crashed")
            raise LoadError(f"Unexpected error while loading mapping: {e}") from e

        self._mapping = tuple(mapping)
        self._pending = None
        log.info("mapping loaded, count=%d", len(self._mapping))
        return self._mapping

    async def preload(self) -> None:
        """Warm the cache in the background; failures are left for the next caller."""
        try:
            await self.ensure_loaded()
        except LoadError as e:
            log.warning("background mapping preload failed, next request will retry: %s", e)

    def draw_three(self, rng: Optional[random.Random] = None) -> List[CardMappingEntry]:
        if self._mapping is None:
            raise EmptyMappingError("Mapping has not been loaded yet")
        return draw_three(self._mapping, rng)
