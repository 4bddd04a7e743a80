"""
Rate limiting for the OTP endpoints (request/verify).
Throttles code brute-forcing and inbox flooding with exponential backoff.
"""
import time
from collections import defaultdict
from threading import Lock

from otpvault.core.config import settings


class RateLimiter:
    """
    Simple in-memory rate limiter with exponential backoff.
    Tracks failed attempts per key (e.g. "otp_verify:<email>").
    """

    def __init__(self, max_attempts: int = 5, base_delay: float = 2.0, max_delay: float = 300.0):
        self._attempts = defaultdict(lambda: {"count": 0, "last_time": 0.0})
        self._lock = Lock()

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    def _required_delay(self, count: int) -> float:
        return min(self.base_delay * (2 ** (count - self.max_attempts)), self.max_delay)

    def is_allowed(self, key: str) -> bool:
        with self._lock:
            entry = self._attempts[key]
            now = time.time()

            # Reset if enough time has passed since last attempt
            if now - entry["last_time"] > self.max_delay * 2:
                entry["count"] = 0
                return True

            if entry["count"] >= self.max_attempts:
                if now - entry["last_time"] < self._required_delay(entry["count"]):
                    return False
                entry["count"] = 0

            return True

    def record_attempt(self, key: str, success: bool = False) -> None:
        with self._lock:
            entry = self._attempts[key]
            entry["last_time"] = time.time()

            if success:
                entry["count"] = 0
            else:
                entry["count"] += 1

    def get_retry_after(self, key: str) -> float:
        with self._lock:
            entry = self._attempts[key]
            if entry["count"] < self.max_attempts:
                return 0.0
            elapsed = time.time() - entry["last_time"]
            return max(0.0, self._required_delay(entry["count"]) - elapsed)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


# Global instance
_limiter = RateLimiter(max_attempts=settings.AUTH_MAX_ATTEMPTS)


def get_rate_limiter() -> RateLimiter:
    return _limiter


def is_rate_limited(key: str) -> bool:
    """Check if a request should be rate limited."""
    return not _limiter.is_allowed(key)


def record_auth_attempt(key: str, success: bool = False) -> None:
    _limiter.record_attempt(key, success=success)


def get_rate_limit_delay(key: str) -> float:
    """Get time to wait in seconds."""
    return _limiter.get_retry_after(key)
