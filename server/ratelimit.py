from collections.abc import Callable
from logging import getLogger
from threading import Lock
from time import monotonic
from typing import final

from common.errors import RateLimiterError

logger = getLogger(__name__)

REFILL_PERIOD = 3600.0
"""
The number of seconds required to refill an empty bucket completely.
"""


@final
class RateLimiter:
    """
    Token bucket tracking the hourly budget of requests to GitHub API.

    The bucket holds at most ``burst`` tokens and refills continuously
    at ``burst`` tokens per hour. Consumption is atomic, so one instance
    can be shared by any number of threads and tasks.
    """
    __slots__ = '_burst', '_rate', '_tokens', '_last', '_clock', '_lock'

    def __init__(
            self,
            burst: int,
            /,
            *,
            period: float = REFILL_PERIOD,
            clock: Callable[[], float] = monotonic,
            ) -> None:
        """
        :param burst: The capacity of the bucket. The bucket starts full.
        :param period: The number of seconds to refill the bucket from zero.
        :param clock: A monotonic clock returning seconds.
        """
        if burst < 0:
            raise ValueError(f'burst must be non-negative, got {burst!r}')

        if period <= 0:
            raise ValueError(f'period must be positive, got {period!r}')

        self._burst = burst
        self._rate = burst / period
        self._tokens = float(burst)
        self._clock = clock
        self._last = clock()
        self._lock = Lock()

    @classmethod
    def from_remaining(
            cls,
            limit: int,
            remaining: int,
            /,
            **kwargs,
            ) -> 'RateLimiter':
        """
        Creates a bucket of size ``limit`` holding only ``remaining`` tokens,
        so the local budget matches the figures reported by GitHub.
        """
        if limit < 0 or not (0 <= remaining <= limit):
            raise RateLimiterError(
                f'cannot seed rate limiter with {remaining} remaining of {limit}'
                )

        limiter = cls(limit, **kwargs)
        if not limiter.allow_n(limit - remaining):
            raise RateLimiterError(
                f'cannot consume {limit - remaining} tokens of {limit}'
                )

        logger.info(f'Rate limiter is ready with {remaining} of {limit} requests available')
        return limiter

    @property
    def burst(self, /) -> int:
        """
        The maximum number of tokens the bucket can hold.
        """
        return self._burst

    @property
    def tokens(self, /) -> float:
        """
        The number of tokens available right now.
        """
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self, /) -> None:
        # Must be called with the lock held
        now = self._clock()
        elapsed = now - self._last
        if elapsed > 0:
            self._tokens = min(float(self._burst), self._tokens + elapsed * self._rate)

        self._last = now

    def allow(self, /) -> bool:
        """
        Consumes one token if available.
        """
        return self.allow_n(1)

    def allow_n(self, n: int, /) -> bool:
        """
        Consumes ``n`` tokens if all of them are available at once.
        Otherwise, consumes nothing and returns ``False``.
        """
        if n < 0:
            raise ValueError(f'n must be non-negative, got {n!r}')

        if n == 0: return True
        if n > self._burst: return False

        with self._lock:
            self._refill()
            if self._tokens < n:
                return False

            self._tokens -= n
            return True


__all__ = 'REFILL_PERIOD', 'RateLimiter'
