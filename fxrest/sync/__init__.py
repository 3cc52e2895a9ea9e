"""Order and trade change polling."""

from fxrest.sync.poller import POLL_ENDPOINTS, PollSession, poll_changes

__all__ = ["POLL_ENDPOINTS", "PollSession", "poll_changes"]
