"""
Bounded cache of resolved alias locations.

A ResolutionCache maps aliases to real locations that were already validated
and successfully opened. It is shared by every handle of one factory and is
safe to use from several threads.
"""

import logging
import threading
from collections import OrderedDict
from typing import List, Optional

from aliasstore.io.constants import DEFAULT_CACHE_SIZE

logger = logging.getLogger(__name__)


class ResolutionCache:
    """
    Least-recently-used mapping from alias to real location.

    ``get`` promotes a hit to most recently used; ``set`` inserts or updates
    and evicts the least recently used entries beyond ``capacity``.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[str, str]" = OrderedDict()
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, alias: str) -> Optional[str]:
        with self._lock:
            location = self._entries.get(alias)
            if location is None:
                logger.debug(f"Resolution cache miss for alias '{alias}'")
                return None
            self._entries.move_to_end(alias)
            logger.debug(f"Resolution cache hit for alias '{alias}' -> {location}")
            return location

    def set(self, alias: str, location: str) -> None:
        with self._lock:
            self._entries[alias] = location
            self._entries.move_to_end(alias)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Resolution cache evicted alias '{evicted}'")

    def discard(self, alias: str) -> bool:
        """Remove an alias. Returns True if it was cached."""
        with self._lock:
            return self._entries.pop(alias, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        """Cached aliases, least recently used first."""
        with self._lock:
            return list(self._entries.keys())

    def __contains__(self, alias: object) -> bool:
        # Membership does not count as a use
        with self._lock:
            return alias in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self):
        return f"ResolutionCache(size={len(self)}, capacity={self._capacity})"
