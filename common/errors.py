from typing import ClassVar

from pydantic import BaseModel

GENERIC_MESSAGE = (
    'internal server error. '
    'contact our support with the reason code for assistance'
)


class AggregationError(Exception):
    """
    Base class for errors surfaced by repository aggregation.
    Each subclass defines a reason code which is safe to show to clients.
    """
    code: ClassVar[str] = 'GENERIC_ERROR'
    public_message: ClassVar[str] = GENERIC_MESSAGE


class RateLimitReached(AggregationError):
    """
    Raised when the local rate budget refuses a request
    or GitHub reports that its rate limit is exhausted.
    """
    code = 'RATE_LIMIT_REACHED'
    public_message = (
        'github rate limit reached. '
        'consider using a token to increase the limit or wait few minutes and try again'
    )


class InvalidDataFound(AggregationError):
    """
    Raised when GitHub returns a repository without required fields.
    """
    code = 'INVALID_DATA_FOUND'


class FetchError(AggregationError):
    """
    Raised when a request to GitHub fails for a reason other than rate limiting.
    """
    code = 'FETCH_ERROR'


class RateLimiterError(AggregationError):
    """
    Raised when the local rate limiter cannot be seeded from GitHub figures.
    """
    code = 'RATE_LIMITER_ERROR'


class APIError(BaseModel, frozen=True):
    """
    Model for the body of error responses.
    """
    code: str
    message: str

    @classmethod
    def from_exception(cls, exc: AggregationError, /) -> 'APIError':
        return cls(code=exc.code, message=exc.public_message)


__all__ = (
    'AggregationError',
    'RateLimitReached',
    'InvalidDataFound',
    'FetchError',
    'RateLimiterError',
    'APIError',
    )
