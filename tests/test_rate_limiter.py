import pytest

from app.middlewares.rate_limit_middleware import InMemoryRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_the_limit_per_key():
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60, clock=FakeClock())

    assert limiter.allow("a") is True
    assert limiter.allow("a") is True
    assert limiter.allow("a") is False
    assert limiter.allow("b") is True


def test_window_slides():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60, clock=clock)

    limiter.allow("a")
    clock.now += 30
    limiter.allow("a")
    assert limiter.allow("a") is False

    # The first hit has left the window, the second has not
    clock.now += 31
    assert limiter.allow("a") is True
    assert limiter.allow("a") is False


def test_idle_keys_are_evicted():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=5, window_seconds=60, clock=clock)

    for i in range(1000):
        limiter.allow(f"10.0.0.{i}/api/v1/auth/login")
    assert len(limiter._hits) == 1000

    clock.now += 61
    assert limiter.allow("fresh") is True
    assert list(limiter._hits) == ["fresh"]


def test_active_keys_survive_eviction():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60, clock=clock)

    limiter.allow("idle")
    clock.now += 30
    limiter.allow("busy")
    limiter.allow("busy")
    clock.now += 31

    limiter.allow("other")
    assert set(limiter._hits) == {"busy", "other"}
    assert limiter.allow("busy") is False


def test_reset_clears_history():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.allow("a")
    limiter.reset()
    assert limiter.allow("a") is True


@pytest.mark.asyncio
async def test_login_is_rate_limited(client):
    for _ in range(10):
        r = await client.post("/api/v1/auth/login", json={"email": "x@example.com", "password": "Wrong123"})
        assert r.status_code == 401

    r = await client.post("/api/v1/auth/login", json={"email": "x@example.com", "password": "Wrong123"})
    assert r.status_code == 429
