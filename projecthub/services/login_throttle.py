"""
Login throttle — per-email lockout after repeated failed logins.

Built on ``limits`` (the library under Flask-Limiter) so counters live in
the same pluggable storage: ``memory://`` for a single process, a Redis
URL when several app instances must share lockouts.

    LOGIN_MAX_ATTEMPTS failures inside LOGIN_LOCK_SECONDS lock the email
    until the window expires. A successful login clears the counter.

Usage:
    throttle = get_login_throttle()
    throttle.check(email)          # raises TooManyAttemptsError when locked
    throttle.consume(email)        # record a failure
    throttle.reset(email)          # after a successful login
"""

import logging
import math
import time

from flask import current_app
from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from projecthub.core.exceptions import TooManyAttemptsError

logger = logging.getLogger(__name__)

NAMESPACE = "login"


class LoginThrottle:
    def __init__(self, storage_uri="memory://", max_attempts=3, lock_seconds=900):
        self.storage = storage_from_string(storage_uri)
        self.strategy = FixedWindowRateLimiter(self.storage)
        self.item = RateLimitItemPerSecond(max_attempts, lock_seconds)

    @staticmethod
    def _key(email):
        return (email or "").strip().lower()

    def retry_after(self, email) -> int:
        """Seconds until ``email`` is unlocked; 0 when not locked."""
        key = self._key(email)
        if self.strategy.test(self.item, NAMESPACE, key):
            return 0
        stats = self.strategy.get_window_stats(self.item, NAMESPACE, key)
        return max(1, math.ceil(stats.reset_time - time.time()))

    def check(self, email) -> None:
        wait = self.retry_after(email)
        if wait:
            logger.warning("Login locked for %s (%ds left)", self._key(email), wait)
            raise TooManyAttemptsError(retry_after=wait)

    def consume(self, email) -> None:
        self.strategy.hit(self.item, NAMESPACE, self._key(email))

    def reset(self, email) -> None:
        self.strategy.clear(self.item, NAMESPACE, self._key(email))

    def reset_all(self) -> None:
        """Drop every counter (used by the test suite)."""
        self.storage.reset()


def init_login_throttle(app):
    app.extensions["login_throttle"] = LoginThrottle(
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        max_attempts=app.config.get("LOGIN_MAX_ATTEMPTS", 3),
        lock_seconds=app.config.get("LOGIN_LOCK_SECONDS", 900),
    )


def get_login_throttle() -> LoginThrottle:
    return current_app.extensions["login_throttle"]
