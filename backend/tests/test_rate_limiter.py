from types import SimpleNamespace

from fadtrack.services import rate_limiter as rate_limiter_module
from fadtrack.services.rate_limiter import SlidingWindowRateLimiter


def test_every_rule_must_pass_before_a_hit_counts():
    limiter = SlidingWindowRateLimiter()
    rules = [("ip", 3, 60), ("ip:alice", 2, 60)]

    assert limiter.allow_all(rules)
    assert limiter.allow_all(rules)
    assert not limiter.allow_all(rules)
    # The refused attempt was not counted against the shared key.
    assert limiter.allow_all([("ip", 3, 60), ("ip:bob", 2, 60)])
    assert not limiter.allow_all([("ip", 3, 60), ("ip:carol", 2, 60)])


def test_expired_windows_are_dropped(monkeypatch):
    limiter = SlidingWindowRateLimiter()
    clock = [1000.0]
    monkeypatch.setattr(rate_limiter_module, "time", SimpleNamespace(monotonic=lambda: clock[0]))

    for name in ("alice", "bob", "carol"):
        assert limiter.allow(f"login:1.2.3.4:{name}", 1, 60)
    assert limiter.tracked_keys() == 3

    clock[0] += 61
    assert limiter.allow("login:5.6.7.8:dave", 1, 60)
    assert limiter.tracked_keys() == 1
