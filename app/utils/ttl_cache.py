import time
from typing import Any, Callable, Dict, Hashable, Tuple

_MISSING = object()


class TTLCache:
    """
    Per-process cache whose entries expire after a fixed number of seconds.

    A ttl of 0 disables caching. At most max_entries are held: expired entries
    are swept on every store and the oldest live ones are evicted after that.
    Entries are replaced wholesale, so concurrent requests may at worst both
    miss and both store the same fresh value.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = max(ttl_seconds, 0.0)
        self._max_entries = max(max_entries, 1)
        self._clock = clock
        # insertion ordered, so the first key is always the oldest store
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, key: Hashable, default: Any = _MISSING) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            self._entries.pop(key, None)
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        if not self.enabled:
            return

        now = self._clock()
        self._sweep(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now, value)

    def _sweep(self, now: float) -> None:
        # stored_at only grows along insertion order
        while self._entries:
            oldest = next(iter(self._entries))
            if now - self._entries[oldest][0] < self._ttl:
                break
            del self._entries[oldest]

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def is_missing(value: Any) -> bool:
        return value is _MISSING
