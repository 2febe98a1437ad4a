import threading
import time
from collections import deque
from typing import Deque, Dict

INVALID_CREDENTIALS = "invalid-credential"
TOO_MANY_REQUESTS = "too-many-requests"

# Every other code collapses to the generic fallback
AUTH_ERROR_MESSAGES = {
    INVALID_CREDENTIALS: "Invalid email or password",
    "user-not-found": "Invalid email or password",
    "wrong-password": "Invalid email or password",
    TOO_MANY_REQUESTS: "Too many attempts. Please try again later.",
}
GENERIC_AUTH_ERROR = "Something went wrong. Please try again."


def auth_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code, GENERIC_AUTH_ERROR)


class LoginThrottle:
    """Counts failed sign-ins per email inside a sliding window."""

    def __init__(self, max_failures: int = 5, window_seconds: int = 15 * 60):
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self._failures: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, key: str, now: float) -> Deque[float]:
        attempts = self._failures.get(key)
        if attempts is None:
            return deque()
        while attempts and now - attempts[0] > self.window_seconds:
            attempts.popleft()
        # Keys whose failures have all expired are dropped
        if not attempts:
            del self._failures[key]
        return attempts

    def is_blocked(self, email: str) -> bool:
        key = email.strip().lower()
        with self._lock:
            return len(self._prune(key, time.monotonic())) >= self.max_failures

    def record_failure(self, email: str) -> None:
        key = email.strip().lower()
        with self._lock:
            now = time.monotonic()
            self._prune(key, now)
            self._failures.setdefault(key, deque()).append(now)

    def reset(self, email: str = None) -> None:
        with self._lock:
            if email is None:
                self._failures.clear()
            else:
                self._failures.pop(email.strip().lower(), None)


login_throttle = LoginThrottle()
