"""Client-side throttling for Kubernetes API calls."""

import logging
import os
import threading
import time
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Generator

from config import get_int, get_number
from metrics import RATE_LIMIT_WAIT_SECONDS
from models import ConfigurationError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Thread-safe limiter bounding concurrency and request rate.

    kopf runs sync handlers in a thread pool, so several claims may be
    reconciled at once; this keeps their combined load on the API server
    bounded. It only delays calls and never retries them.
    """

    def __init__(
        self,
        max_concurrent: int = 10,
        requests_per_second: float = 20.0,
    ) -> None:
        """Initialize rate limiter.

        Args:
            max_concurrent: Maximum number of in-flight API calls
            requests_per_second: Maximum requests per second (0 disables)
        """
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self._interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._next_allowed = 0.0
        self._lock = threading.Lock()
        self.max_concurrent = max_concurrent
        self.requests_per_second = requests_per_second

        logger.debug("Initialized %r", self)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "RateLimiter":
        """Create from KUBE_MAX_CONCURRENT_CALLS and KUBE_REQUESTS_PER_SECOND.

        Raises:
            ConfigurationError: If either variable is not a valid number
        """
        if env is None:
            env = os.environ
        max_concurrent = get_int(env, "KUBE_MAX_CONCURRENT_CALLS", 10)
        if max_concurrent < 1:
            raise ConfigurationError("KUBE_MAX_CONCURRENT_CALLS must be at least 1")
        return cls(
            max_concurrent=max_concurrent,
            requests_per_second=get_number(env, "KUBE_REQUESTS_PER_SECOND", 20.0),
        )

    def _reserve(self) -> float:
        """Reserve the next send time and return how long to sleep for it."""
        with self._lock:
            now = time.monotonic()
            start = max(now, self._next_allowed)
            self._next_allowed = start + self._interval
            return start - now

    @contextmanager
    def acquire(self) -> Generator[None, None, None]:
        """Hold a slot for the duration of one API call.

        Usage:
            with limiter.acquire():
                api.get_cluster_custom_object(...)
        """
        wait_start = time.monotonic()
        with self._slots:
            delay = self._reserve()
            if delay > 0:
                time.sleep(delay)

            waited = time.monotonic() - wait_start
            if waited > 0.001:
                RATE_LIMIT_WAIT_SECONDS.observe(waited)

            yield

    def __repr__(self) -> str:
        return (
            f"RateLimiter(max_concurrent={self.max_concurrent}, "
            f"requests_per_second={self.requests_per_second})"
        )


_rate_limiter: RateLimiter | None = None
_rate_limiter_lock = threading.Lock()


def get_rate_limiter() -> RateLimiter:
    """Get or create the process-wide rate limiter."""
    global _rate_limiter

    with _rate_limiter_lock:
        if _rate_limiter is None:
            _rate_limiter = RateLimiter.from_env()
            logger.info("Kubernetes API rate limiter: %r", _rate_limiter)
        return _rate_limiter
