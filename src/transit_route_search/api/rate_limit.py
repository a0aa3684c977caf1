"""Per-caller rate limiting."""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from .responses import rate_limited_response

logger = logging.getLogger(__name__)

# Paths that are never limited
EXEMPT_PATHS = frozenset({"/healthz"})


@dataclass
class _Bucket:
    tokens: float
    updated: float


class RateLimiter:
    """Token bucket per caller.

    Each caller may spend ``requests_per_window`` requests per ``window``
    seconds, refilled continuously. Idle buckets are evicted by a background
    thread started with :meth:`start` and halted with :meth:`stop`.
    """

    def __init__(
        self,
        requests_per_window: int,
        window: float = 1.0,
        cleanup_interval: float = 60.0,
        idle_ttl: float = 180.0,
        exempt_keys: set[str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            requests_per_window: Budget per caller; 0 or less disables limiting
            window: Window length in seconds
            cleanup_interval: Seconds between eviction passes
            idle_ttl: Seconds without requests before a bucket is evicted
            exempt_keys: Callers that are never limited
            clock: Monotonic time source
        """
        self._capacity = float(requests_per_window)
        self._window = window
        self._cleanup_interval = cleanup_interval
        self._idle_ttl = idle_ttl
        self._exempt_keys = frozenset(exempt_keys or ())
        self._clock = clock

        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def enabled(self) -> bool:
        return self._capacity > 0

    @property
    def retry_after(self) -> int:
        """Whole seconds until a drained bucket regains one request."""
        if not self.enabled:
            return 0
        return max(1, math.ceil(self._window / self._capacity))

    def allow(self, caller: str) -> bool:
        """Spend one request from ``caller``'s budget if any is left."""
        if not self.enabled or caller in self._exempt_keys:
            return True

        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(caller)
            if bucket is None:
                bucket = _Bucket(tokens=self._capacity, updated=now)
                self._buckets[caller] = bucket
            else:
                elapsed = now - bucket.updated
                refill = elapsed * self._capacity / self._window
                bucket.tokens = min(self._capacity, bucket.tokens + refill)
                bucket.updated = now

            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True
            return False

    def cleanup(self) -> int:
        """Evict buckets idle for longer than the TTL.

        Returns:
            Number of evicted buckets
        """
        cutoff = self._clock() - self._idle_ttl
        with self._lock:
            stale = [k for k, b in self._buckets.items() if b.updated < cutoff]
            for key in stale:
                del self._buckets[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} idle rate limit buckets")
        return len(stale)

    def tracked_callers(self) -> int:
        """Number of callers currently holding a bucket."""
        with self._lock:
            return len(self._buckets)

    def start(self) -> None:
        """Start the background cleanup thread (no-op if running)."""
        with self._lock:
            if self._thread is not None:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run_cleanup, name="rate-limit-cleanup", daemon=True
            )
            self._thread.start()
        logger.info("Rate limiter cleanup started")

    def stop(self) -> None:
        """Stop the cleanup thread and wait for it to exit (idempotent)."""
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is None:
            return
        self._stop_event.set()
        thread.join()
        logger.info("Rate limiter cleanup stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None

    def _run_cleanup(self) -> None:
        while not self._stop_event.wait(self._cleanup_interval):
            self.cleanup()


class RateLimitMiddleware:
    """ASGI middleware rejecting over-budget callers with a 429 envelope.

    Callers are identified by the ``key`` query parameter, falling back to
    the client address.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter):
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in EXEMPT_PATHS:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        caller = request.query_params.get("key") or (
            request.client.host if request.client else "anonymous"
        )

        if not self.limiter.allow(caller):
            logger.warning(f"Rate limit exceeded for caller {caller!r}")
            response = rate_limited_response(self.limiter.retry_after)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
