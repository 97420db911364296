"""Rate Limiter - throttles API calls and client requests."""

import time
from collections import defaultdict
from threading import Lock
from typing import Callable, Optional


class RateLimiter:
    """Thread-safe sliding-window rate limiter keyed by endpoint or client."""

    def __init__(
        self,
        max_calls: int = 60,
        time_window: float = 60.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            max_calls: Maximum number of calls allowed in time_window
            time_window: Time window in seconds (default: 60 seconds)
            clock: Time source, replaceable in tests
            sleep: Sleep function, replaceable in tests
        """
        self.max_calls = max_calls
        self.time_window = time_window
        self.clock = clock
        self.sleep = sleep

        self.calls = defaultdict(list)
        self.lock = Lock()

    def _prune(self, key: str, now: float) -> list[float]:
        calls = self.calls[key]
        calls[:] = [call_time for call_time in calls if now - call_time < self.time_window]
        return calls

    def wait_if_needed(self, key: str = "default") -> None:
        """
        Block until a call is allowed, then record it.

        Args:
            key: Endpoint or client identifier
        """
        with self.lock:
            now = self.clock()
            calls = self._prune(key, now)

            if len(calls) >= self.max_calls:
                wait_time = (calls[0] + self.time_window) - now
                if wait_time > 0:
                    self.sleep(wait_time)
                    now = self.clock()
                    calls = self._prune(key, now)

            calls.append(now)

    def try_acquire(self, key: str = "default") -> bool:
        """
        Record a call if the key is under its limit.

        Args:
            key: Endpoint or client identifier

        Returns:
            True if the call was allowed, False if the limit is reached
        """
        with self.lock:
            now = self.clock()
            calls = self._prune(key, now)
            if len(calls) >= self.max_calls:
                return False
            calls.append(now)
            return True


_elevenlabs_limiter: Optional[RateLimiter] = None
_request_limiter: Optional[RateLimiter] = None


def get_elevenlabs_limiter(max_calls: int = 100, time_window: float = 60.0) -> RateLimiter:
    """Get or create the ElevenLabs rate limiter."""
    global _elevenlabs_limiter
    if _elevenlabs_limiter is None:
        _elevenlabs_limiter = RateLimiter(max_calls=max_calls, time_window=time_window)
    return _elevenlabs_limiter


def get_request_limiter(max_calls: int = 10, time_window: float = 60.0) -> RateLimiter:
    """Get or create the per-client story generation limiter."""
    global _request_limiter
    if _request_limiter is None:
        _request_limiter = RateLimiter(max_calls=max_calls, time_window=time_window)
    return _request_limiter
