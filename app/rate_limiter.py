"""
Token bucket throttle shared by the provider clients
"""
import threading
import time
import logging
from typing import Optional

logger = logging.getLogger("main")


class RateLimiter:
    """
    Token bucket: `rate` tokens per second refill, at most `burst` stored.

    acquire() blocks until a token is available. Waiting is done on the
    cancellation event so a scheduler shutdown interrupts it immediately.
    """

    def __init__(self, rate: float, burst: int = 1, name: str = "provider", clock=time.monotonic):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = float(rate)
        self.burst = max(1, int(burst))
        self.name = name
        self._clock = clock
        self._tokens = float(self.burst)
        self._updated_at = clock()
        self._lock = threading.Lock()

    def _refill(self):
        now = self._clock()
        elapsed = now - self._updated_at
        if elapsed > 0:
            self._tokens = min(self.burst, self._tokens + elapsed * self.rate)
        self._updated_at = now

    def try_acquire(self) -> bool:
        """Take a token if one is available, without waiting"""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def wait_time(self) -> float:
        """Seconds until the next token is available"""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                return 0.0
            return (1 - self._tokens) / self.rate

    def acquire(self, cancel_event: Optional[threading.Event] = None) -> bool:
        """Block until a token is taken. Returns False if cancelled while waiting."""
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return False
            if self.try_acquire():
                return True
            delay = self.wait_time()
            logger.debug(f"Rate limit ({self.name}): waiting {delay:.2f}s")
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    return False
            else:
                time.sleep(delay)


def pause(seconds: float, cancel_event: Optional[threading.Event] = None) -> bool:
    """Politeness pause between batches; returns False if cancelled"""
    if seconds <= 0:
        return not (cancel_event is not None and cancel_event.is_set())
    if cancel_event is not None:
        return not cancel_event.wait(seconds)
    time.sleep(seconds)
    return True
