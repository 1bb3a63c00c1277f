import asyncio

import pytest

from api import rate_limit
from api.rate_limit import InMemoryBackend, create_backend, rate_limit_bucket


@pytest.mark.parametrize(
    "path,bucket",
    [
        ("/api/events", "events"),
        ("/api/congestion", "congestion"),
        ("/api/search-venues", "search-venues"),
        ("/api/railways", None),
        ("/api/favorites", None),
        ("/health", None),
    ],
)
def test_rate_limit_bucket(path, bucket):
    assert rate_limit_bucket(path) == bucket


def test_in_memory_backend_blocks_after_limit():
    backend = InMemoryBackend()

    async def _run():
        results = [await backend.hit("congestion:1.2.3.4", limit=2, window=60) for _ in range(3)]
        other = await backend.hit("congestion:5.6.7.8", limit=2, window=60)
        return results, other

    results, other = asyncio.run(_run())
    assert results == [False, False, True]
    assert other is False


def test_in_memory_backend_window_slides(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(rate_limit.time, "monotonic", lambda: clock["now"])
    backend = InMemoryBackend()

    assert asyncio.run(backend.hit("k", limit=1, window=60)) is False
    assert asyncio.run(backend.hit("k", limit=1, window=60)) is True

    clock["now"] += 60
    assert asyncio.run(backend.hit("k", limit=1, window=60)) is False


def test_create_backend_defaults_to_memory(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    assert isinstance(create_backend(), InMemoryBackend)
