"""Rate limiter Redis fallback"""

import pytest

from app import rate_limiter


@pytest.fixture()
def unreachable_redis(monkeypatch):
    attempts = []

    def refuse():
        attempts.append(1)
        raise ConnectionError("Connection refused")

    monkeypatch.setattr(rate_limiter, "redis_client", None)
    monkeypatch.setattr(rate_limiter, "last_redis_failure", 0.0)
    monkeypatch.setattr(rate_limiter, "get_redis_client", refuse)
    monkeypatch.setattr(rate_limiter, "memory_cache", {})
    return attempts


def test_unreachable_redis_is_not_retried_on_every_request(monkeypatch, unreachable_redis):
    now = [1_000_000.0]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    assert rate_limiter.optional_redis_client() is None
    assert rate_limiter.optional_redis_client() is None
    assert len(unreachable_redis) == 1

    now[0] += rate_limiter.REDIS_RETRY_INTERVAL
    assert rate_limiter.optional_redis_client() is None
    assert len(unreachable_redis) == 2


def test_memory_only_limit(unreachable_redis):
    results = [rate_limiter.check_rate_limit("login:10.0.0.1", 2, 60, None)[0] for _ in range(3)]
    assert results == [True, True, False]
