"""Tests for the per-caller rate limiter."""

from repo_glossary.ratelimit import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    def test_allows_up_to_limit_then_blocks(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
        assert [limiter.check("ip-1") for _ in range(4)] == [True, True, True, False]

    def test_callers_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
        assert limiter.check("alice")
        assert not limiter.check("alice")
        assert limiter.check("bob")

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.check("alice")
        assert not limiter.check("alice")

        clock.now += 30
        assert limiter.retry_after("alice") == 30
        assert not limiter.check("alice")

        clock.now += 31
        assert limiter.check("alice")

    def test_remaining(self):
        limiter = RateLimiter(max_requests=5, window_seconds=60, clock=FakeClock())
        assert limiter.remaining("x") == 5
        limiter.check("x")
        limiter.check("x")
        assert limiter.remaining("x") == 3

    def test_reset(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
        limiter.check("a")
        limiter.check("b")
        limiter.reset("a")
        assert limiter.check("a")
        assert not limiter.check("b")
        limiter.reset()
        assert limiter.check("b")

    def test_defaults(self):
        limiter = RateLimiter()
        assert limiter.max_requests == 5
        assert limiter.window_seconds == 900
        assert limiter.retry_after("nobody") == 0.0

    def test_expired_windows_are_forgotten(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        for caller in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            limiter.check(caller)
        assert len(limiter) == 3

        clock.now += 61
        limiter.check("10.0.0.4")

        assert len(limiter) == 1
        assert limiter.remaining("10.0.0.1") == 1
