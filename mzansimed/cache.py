import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Cache owned by a single service instance; entries expire after a TTL."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, ttl: float) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            inserted_at, value = entry
            if now - inserted_at >= ttl:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: Hashable, value: Any):
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_refresh(self, key: Hashable, ttl: float, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling `loader` when missing or expired.

        Loader errors propagate and leave the cache untouched.
        """
        value = self.get(key, ttl)
        if value is not None:
            return value
        logger.debug(f"Refreshing cache entry {key!r}")
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
