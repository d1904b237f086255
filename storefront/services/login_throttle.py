import logging
import math
import threading
import time
from typing import Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class LoginThrottle:
    """Counts failed logins per key inside a rolling window.

    Attempts are stored as timestamps per key; anything older than
    ``decay_seconds`` no longer counts. The clock is injectable so tests can
    move time forward without sleeping.
    """

    def __init__(self, max_attempts: int = 5, decay_seconds: int = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.decay_seconds = decay_seconds
        self.clock = clock
        self._attempts: Dict[str, List[float]] = {}
        self._swept_at: Optional[float] = None
        self._lock = threading.Lock()

    @staticmethod
    def key_for(address: str, email: str) -> str:
        return f"login:{address}:{email.lower()}"

    def _live(self, key: str, now: float) -> List[float]:
        cutoff = now - self.decay_seconds
        attempts = [t for t in self._attempts.get(key, []) if t > cutoff]
        if attempts:
            self._attempts[key] = attempts
        else:
            self._attempts.pop(key, None)
        return attempts

    def __len__(self) -> int:
        return len(self._attempts)

    def _sweep(self, now: float) -> None:
        # Drops keys whose newest attempt has left the window, at most
        # once per window
        if self._swept_at is not None and now - self._swept_at < self.decay_seconds:
            return
        cutoff = now - self.decay_seconds
        self._attempts = {
            key: attempts for key, attempts in self._attempts.items() if attempts[-1] > cutoff
        }
        self._swept_at = now

    def too_many_attempts(self, key: str) -> bool:
        with self._lock:
            return len(self._live(key, self.clock())) >= self.max_attempts

    def available_in(self, key: str) -> int:
        """Seconds until the oldest counted attempt leaves the window."""
        with self._lock:
            now = self.clock()
            attempts = self._live(key, now)
            if len(attempts) < self.max_attempts:
                return 0
            oldest = attempts[len(attempts) - self.max_attempts]
            return max(1, math.ceil(oldest + self.decay_seconds - now))

    def hit(self, key: str) -> int:
        with self._lock:
            now = self.clock()
            self._sweep(now)
            attempts = self._live(key, now)
            attempts.append(now)
            self._attempts[key] = attempts
            return len(attempts)

    def clear(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)
