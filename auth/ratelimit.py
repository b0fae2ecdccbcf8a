"""
auth/ratelimit.py -- Fixed-window request limiter keyed by client.

Built on the `limits` package (the engine underneath slowapi) with its
FixedWindowRateLimiter strategy. Per key the storage holds a counter and an
expiry:

  - no entry, or the window has elapsed  -> counter = 1, admit
  - otherwise counter += 1               -> admit while counter <= max

The increment-and-compare is one storage call, atomic per key (MemoryStorage
takes a per-key lock; Redis uses INCR). Bursts straddling a window boundary
can admit up to 2x max requests -- fixed-window semantics, not a bug.

The storage is injected so each application (and each test) owns its
counters. Swap "memory://" for a shared backend URI without touching callers.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import math
import time

from limits import RateLimitItem, parse
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from auth.exceptions import RateLimited

DEFAULT_LIMIT = "15/minute"


class RateLimiter:
    """Admission control for one limit across many client keys.

    Usage:
        limiter = RateLimiter("15/minute")
        limiter.check("203.0.113.7")  # raises RateLimited on the 16th call
    """

    def __init__(self, limit: str | RateLimitItem = DEFAULT_LIMIT, storage: Storage | None = None) -> None:
        self.item: RateLimitItem = parse(limit) if isinstance(limit, str) else limit
        self.storage: Storage = storage if storage is not None else storage_from_string("memory://")
        self._strategy = FixedWindowRateLimiter(self.storage)

    @classmethod
    def from_uri(cls, limit: str, storage_uri: str) -> RateLimiter:
        return cls(limit, storage_from_string(storage_uri))

    def hit(self, key: str) -> bool:
        """Count one request for key. Returns True if it is admitted."""
        return self._strategy.hit(self.item, key)

    def check(self, key: str) -> None:
        """Count one request for key; raise RateLimited if it is over quota."""
        if not self.hit(key):
            raise RateLimited(key, retry_after=self.retry_after(key))

    def remaining(self, key: str) -> int:
        _, remaining = self._strategy.get_window_stats(self.item, key)
        return remaining

    def retry_after(self, key: str) -> int:
        """Whole seconds until the key's current window resets."""
        reset_time, _ = self._strategy.get_window_stats(self.item, key)
        return max(0, math.ceil(reset_time - time.time()))

    def reset(self) -> None:
        """Drop every counter."""
        self.storage.reset()
