"""Unit tests for auth/ratelimit.py -- fixed-window admission control.

Covers:
- requests 1-15 admitted, 16+ rejected within one window
- check() raises RateLimited with a retry_after inside the window
- client keys are counted independently
- the counter resets once the window elapses
- the injected storage is the one that holds the counters
- concurrent hits on one key never admit more than the limit
- the client key is the socket peer, never X-Forwarded-For
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import Request
from limits.storage import MemoryStorage

from api.limiter import client_key
from auth.exceptions import RateLimited
from auth.ratelimit import RateLimiter


def test_first_fifteen_admitted_sixteenth_rejected():
    limiter = RateLimiter("15/minute")
    results = [limiter.hit("127.0.0.1") for _ in range(20)]
    assert results[:15] == [True] * 15
    assert results[15:] == [False] * 5


def test_check_raises_rate_limited():
    limiter = RateLimiter("15/minute")
    for _ in range(15):
        limiter.check("127.0.0.1")
    with pytest.raises(RateLimited) as excinfo:
        limiter.check("127.0.0.1")
    assert excinfo.value.key == "127.0.0.1"
    assert 0 <= excinfo.value.retry_after <= 60
    assert excinfo.value.message == "Too many requests, please try again later"


def test_keys_are_independent():
    limiter = RateLimiter("2/minute")
    assert limiter.hit("10.0.0.1")
    assert limiter.hit("10.0.0.1")
    assert not limiter.hit("10.0.0.1")
    assert limiter.hit("10.0.0.2")


def test_remaining_counts_down():
    limiter = RateLimiter("3/minute")
    assert limiter.remaining("k") == 3
    limiter.hit("k")
    assert limiter.remaining("k") == 2


def test_window_elapse_resets_counter():
    limiter = RateLimiter("2/second")
    assert limiter.hit("k")
    assert limiter.hit("k")
    assert not limiter.hit("k")
    time.sleep(1.2)
    assert limiter.hit("k")


def test_reset_clears_all_counters():
    limiter = RateLimiter("1/minute")
    limiter.hit("a")
    limiter.hit("b")
    limiter.reset()
    assert limiter.hit("a")
    assert limiter.hit("b")


def test_injected_storage_is_shared():
    """Two limiters over one storage see the same counters."""
    storage = MemoryStorage()
    first = RateLimiter("2/minute", storage)
    second = RateLimiter("2/minute", storage)
    assert first.hit("k")
    assert second.hit("k")
    assert not first.hit("k")


def test_separate_limiters_are_isolated():
    assert RateLimiter("1/minute").hit("k")
    assert RateLimiter("1/minute").hit("k")


def test_concurrent_hits_never_over_admit():
    limiter = RateLimiter("15/minute")
    with ThreadPoolExecutor(max_workers=8) as pool:
        admitted = list(pool.map(lambda _: limiter.hit("shared"), range(60)))
    assert 0 < sum(admitted) <= 15
    assert limiter.remaining("shared") == 0


def _request(peer: str, forwarded: str | None = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": (peer, 50000)})


def test_client_key_is_socket_peer():
    assert client_key(_request("203.0.113.7")) == "203.0.113.7"


def test_client_key_ignores_forwarded_header():
    assert client_key(_request("203.0.113.7", forwarded="10.9.0.1, 127.0.0.1")) == "203.0.113.7"
