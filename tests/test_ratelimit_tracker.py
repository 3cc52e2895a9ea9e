"""Tests for rate limit tracker."""

import logging

from fxrest.ratelimit.tracker import RateLimitStatus, RateLimitTracker
from fxrest.types import RateLimit


def test_rate_limit_status_properties():
    """Test RateLimitStatus property calculations."""
    info = RateLimitStatus(type="IPRateLimiter", limit=100, remaining=30)

    assert info.used == 70
    assert info.usage_percent == 70.0
    assert info.status == "warning"  # 70% is in warning range


def test_rate_limit_status_thresholds():
    """Test status indicator thresholds."""
    assert RateLimitStatus("IPRateLimiter", 100, 50).status == "ok"
    assert RateLimitStatus("IPRateLimiter", 100, 20).status == "warning"
    assert RateLimitStatus("IPRateLimiter", 100, 5).status == "critical"
    assert RateLimitStatus("IPRateLimiter", 0, 0).usage_percent == 0.0


def test_tracker_record_and_get():
    tracker = RateLimitTracker()
    tracker.record(RateLimit(type="UsernameRateLimiter", limit=7200, remaining=7100))

    info = tracker.get("UsernameRateLimiter")
    assert info is not None
    assert info.limit == 7200
    assert info.remaining == 7100
    assert tracker.get("IPRateLimiter") is None


def test_tracker_get_all_sorted():
    tracker = RateLimitTracker()
    tracker.record_all(
        [
            RateLimit(type="UsernameRateLimiter", limit=10, remaining=9),
            RateLimit(type="IPRateLimiter", limit=10, remaining=1),
        ]
    )

    assert [l.type for l in tracker.get_all()] == ["IPRateLimiter", "UsernameRateLimiter"]


def test_tracker_update_from_headers():
    """Test header parsing with mixed-case names."""
    tracker = RateLimitTracker()
    status = tracker.update_from_headers({"X-RateLimit-Limit": "120", "x-ratelimit-remaining": "12"})

    assert status is not None
    assert tracker.get("header").remaining == 12
    assert tracker.update_from_headers({"X-RateLimit-Limit": "120"}) is None
    assert tracker.update_from_headers({"X-RateLimit-Limit": "lots", "X-RateLimit-Remaining": "1"}) is None


def test_should_throttle():
    tracker = RateLimitTracker()
    assert not tracker.should_throttle("IPRateLimiter")
    assert not tracker.should_throttle()

    tracker.record(RateLimit(type="IPRateLimiter", limit=100, remaining=5))  # 95% used
    assert tracker.should_throttle("IPRateLimiter")
    assert tracker.should_throttle()
    assert not tracker.should_throttle("IPRateLimiter", threshold=0.99)


def test_warning_logged_once_when_crossing(caplog):
    tracker = RateLimitTracker(warn_threshold=0.8)

    with caplog.at_level(logging.WARNING, logger="fxrest.ratelimit.tracker"):
        tracker.record(RateLimit(type="IPRateLimiter", limit=100, remaining=50))
        tracker.record(RateLimit(type="IPRateLimiter", limit=100, remaining=10))
        tracker.record(RateLimit(type="IPRateLimiter", limit=100, remaining=5))

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "IPRateLimiter" in warnings[0].getMessage()


def test_clear():
    tracker = RateLimitTracker()
    tracker.record(RateLimit(type="IPRateLimiter", limit=1, remaining=1))
    tracker.clear()
    assert tracker.get_all() == []
