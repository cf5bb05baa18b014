"""Key-addressed read cache in front of the fetcher."""
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class KeyCache:
    """Caches fetched data under the exact key it was requested with.

    A miss calls the fetcher and stores the result; failures are raised and
    never stored. Entries stay until invalidated: there is no expiry and no
    dependency tracking, so writers must invalidate every key they affect.

    The fetcher runs outside the lock. Every invalidation bumps a generation
    counter, and a fetched result is only stored when no invalidation landed
    while it was in flight.
    """

    def __init__(self, fetcher: Callable[[str], Any]):
        self.fetcher = fetcher
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._generation = 0
        self._lock = threading.RLock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            generation = self._generation
        if entry is not None:
            return entry['data']
        data = self.fetcher(key)
        with self._lock:
            if self._generation == generation:
                self._entries[key] = {'data': data, 'fetched_at': time.time()}
            else:
                logger.debug(f"Discarded fetch of {key} overtaken by an invalidation")
        return data

    def peek(self, key: str) -> Optional[Any]:
        """Cached data for key, without fetching."""
        with self._lock:
            entry = self._entries.get(key)
        return entry['data'] if entry else None

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            self._generation += 1
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"Invalidated {key}")
        return removed

    def invalidate_where(self, predicate: Callable[[str], bool]) -> List[str]:
        """Drop every cached key for which predicate(key) is true."""
        with self._lock:
            self._generation += 1
            doomed = [key for key in self._entries if predicate(key)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug(f"Invalidated {', '.join(doomed)}")
        return doomed

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
