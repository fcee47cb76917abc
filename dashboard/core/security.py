import math
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from dashboard.core.config import settings


def verify_api_key(candidate: str | None) -> bool:
    expected = settings.API_SECURITY_KEY
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())


@dataclass
class FailedAttempt:
    count: int
    first_attempt: float
    last_attempt: float
    blocked_until: float | None = None


class BruteForceProtection:
    """Per-IP failed attempt tracking for the key validation endpoint.

    An IP reaching ``max_attempts`` failures inside ``window_seconds`` is
    blocked for ``block_seconds``. State lives in process memory; expired
    entries are swept at most once per window while the tracker is in use.
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: int,
        block_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.block_seconds = block_seconds
        self._clock = clock
        self._attempts: dict[str, FailedAttempt] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def retry_after(self, ip: str) -> int | None:
        """Seconds until ``ip`` may try again, or None when it is not blocked."""
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)
            attempt = self._attempts.get(ip)
            if attempt is None or attempt.blocked_until is None:
                return None
            if now >= attempt.blocked_until:
                del self._attempts[ip]
                return None
            return math.ceil(attempt.blocked_until - now)

    def record_failure(self, ip: str) -> None:
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)
            attempt = self._attempts.get(ip)
            if attempt is None or now - attempt.first_attempt > self.window_seconds:
                attempt = FailedAttempt(count=0, first_attempt=now, last_attempt=now)
                self._attempts[ip] = attempt
            attempt.count += 1
            attempt.last_attempt = now
            if attempt.count >= self.max_attempts:
                attempt.blocked_until = now + self.block_seconds

    def clear(self, ip: str) -> None:
        with self._lock:
            self._attempts.pop(ip, None)

    def attempt_count(self, ip: str) -> int:
        with self._lock:
            attempt = self._attempts.get(ip)
            return attempt.count if attempt else 0

    def cleanup(self) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

    def _sweep(self, now: float) -> None:
        for ip in list(self._attempts):
            attempt = self._attempts[ip]
            if attempt.blocked_until is not None:
                stale = now >= attempt.blocked_until
            else:
                stale = now - attempt.last_attempt > self.window_seconds
            if stale:
                del self._attempts[ip]
        self._last_sweep = now


brute_force_protection = BruteForceProtection(
    max_attempts=settings.BRUTE_FORCE_MAX_ATTEMPTS,
    window_seconds=settings.BRUTE_FORCE_WINDOW_SECONDS,
    block_seconds=settings.BRUTE_FORCE_BLOCK_SECONDS,
)
