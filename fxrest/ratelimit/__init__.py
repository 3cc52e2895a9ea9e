"""Rate limit module."""

from fxrest.ratelimit.budget import RequestBudget, TokenBucket
from fxrest.ratelimit.tracker import RateLimitStatus, RateLimitTracker

__all__ = ["RateLimitStatus", "RateLimitTracker", "RequestBudget", "TokenBucket"]
