from __future__ import annotations

import asyncio

import pytest

from questline.services.rate_limiter import RateLimit, RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter({"quest": RateLimit(3, window_seconds=60)}, clock=clock)


def test_allows_up_to_ceiling_then_reports_retry_after(limiter, clock):
    assert [limiter.check("u1", "quest").allowed for _ in range(3)] == [True] * 3

    clock.advance(20)
    decision = limiter.check("u1", "quest")

    assert decision.allowed is False
    assert decision.retry_after_seconds == 40
    assert limiter.remaining("u1", "quest") == 0


def test_members_and_actions_are_counted_separately(clock):
    limiter = RateLimiter(
        {"quest": RateLimit(1), "xp": RateLimit(1)}, clock=clock
    )
    assert limiter.check("u1", "quest").allowed
    assert limiter.check("u1", "xp").allowed
    assert limiter.check("u2", "quest").allowed
    assert not limiter.check("u1", "quest").allowed


def test_window_resets_after_expiry(limiter, clock):
    for _ in range(3):
        limiter.check("u1", "quest")
    clock.advance(60)

    assert limiter.check("u1", "quest").allowed is True
    assert limiter.remaining("u1", "quest") == 2


def test_retry_after_is_at_least_one_second(limiter, clock):
    for _ in range(3):
        limiter.check("u1", "quest")
    clock.advance(59.9)

    assert limiter.check("u1", "quest").retry_after_seconds == 1


def test_unknown_action_is_rejected(limiter):
    with pytest.raises(ValueError):
        limiter.check("u1", "nope")


def test_cleanup_evicts_expired_windows(limiter, clock):
    limiter.check("u1", "quest")
    clock.advance(30)
    limiter.check("u2", "quest")
    clock.advance(30)

    assert limiter.cleanup() == 1
    assert len(limiter) == 1


def test_size_ceiling_triggers_cleanup(clock):
    limiter = RateLimiter({"quest": RateLimit(5, 10)}, clock=clock, max_entries=2)
    for user in ("a", "b", "c"):
        limiter.check(user, "quest")
    clock.advance(10)

    limiter.check("d", "quest")

    assert len(limiter) == 1


async def test_background_cleanup_runs_until_stopped(clock):
    limiter = RateLimiter(
        {"quest": RateLimit(1, 1)}, clock=clock, cleanup_interval=0.01
    )
    limiter.check("u1", "quest")
    clock.advance(5)

    limiter.start()
    await asyncio.sleep(0.05)
    await limiter.stop()

    assert len(limiter) == 0
