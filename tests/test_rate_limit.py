import time

from safestake_service.rate_limit import RateLimiter


def test_limit_enforced_per_key():
    limiter = RateLimiter(2)
    assert limiter.allow("a")
    assert limiter.allow("a")
    result = limiter.check("a")
    assert not result.allowed
    assert result.retry_after is not None
    assert limiter.allow("b")


def test_one_time_keys_are_swept():
    limiter = RateLimiter(10, window_seconds=0)
    for i in range(1000):
        limiter.allow(f"k{i}")
    time.sleep(0.01)

    assert limiter.allow("fresh")
    assert limiter.tracked_keys() == 1


def test_cleanup_expired_drops_empty_keys():
    limiter = RateLimiter(10, window_seconds=0)
    for i in range(5):
        limiter.allow(f"k{i}")
    time.sleep(0.01)

    assert limiter.cleanup_expired() == 5
    assert limiter.tracked_keys() == 0


def test_live_keys_survive_cleanup():
    limiter = RateLimiter(10)
    limiter.allow("a")
    assert limiter.cleanup_expired() == 0
    assert limiter.tracked_keys() == 1
    assert limiter.check("a").remaining == 8


def test_reset():
    limiter = RateLimiter(1)
    limiter.allow("a")
    limiter.allow("b")
    limiter.reset("a")
    assert limiter.allow("a")
    assert not limiter.allow("b")
    limiter.reset()
    assert limiter.tracked_keys() == 0
