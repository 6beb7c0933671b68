"""Fixed-window request counter per client."""

from __future__ import annotations

import threading
import time
from typing import Dict, Tuple


class RequestRateLimiter:
    """Allows at most ``limit`` requests per client in each wall-clock minute."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._counters: Dict[Tuple[str, int], int] = {}
        self._lock = threading.Lock()

    def check(self, client: str) -> bool:
        if self.limit <= 0:
            return True
        minute = int(time.time() // 60)
        key = (client, minute)
        with self._lock:
            for stale in [k for k in self._counters if k[1] < minute]:
                del self._counters[stale]
            count = self._counters.get(key, 0)
            if count >= self.limit:
                return False
            self._counters[key] = count + 1
        return True
