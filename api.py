from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from logging import getLogger
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.errors import *
from common.logging import JSONFormatter, init_logging
from common.models import RepositoryView, SearchQuery
from server.aggregator import RepositoryAggregator
from server.github import GitHubClient, make_http_client
from server.models import Settings
from server.ratelimit import RateLimiter

settings: Settings
http_client: httpx.AsyncClient
aggregator: RepositoryAggregator


@asynccontextmanager
async def lifespan(_: FastAPI, /) -> AsyncIterator[None]:
    global settings, http_client, aggregator
    # Actions on startup
    settings = Settings()
    if settings.log_json:
        init_logging(level=settings.log_level, formatter=JSONFormatter())
    else:
        init_logging(level=settings.log_level)

    if settings.github_token:
        logger.info('GitHub token is successfully added to headers')

    http_client = make_http_client(settings)
    client = GitHubClient(http_client)
    try:
        # Seed the local budget with the current figures of GitHub
        status = await client.fetch_rate_limit()
        logger.info(
            f'GitHub reports {status.remaining} of {status.limit} requests remaining, '
            f'the limit resets at {datetime.fromtimestamp(status.reset, UTC):%Y-%m-%d %H:%M:%S} UTC'
            )
        rate_limiter = RateLimiter.from_remaining(status.limit, status.remaining)
    except AggregationError:
        await http_client.aclose()
        logger.exception('Unable to load current GitHub rate limits')
        raise

    aggregator = RepositoryAggregator(
        client,
        rate_limiter,
        max_parallel_tasks=settings.max_parallel_tasks,
        )
    logger.info(
        f'Aggregator is ready. '
        f'Rate limit is {rate_limiter.burst} requests per hour, '
        f'up to {settings.max_parallel_tasks} parallel language requests'
        )
    yield
    # Actions on shutdown
    await http_client.aclose()


def get_aggregator() -> RepositoryAggregator:
    """
    Dependency function for accessing the global :class:`RepositoryAggregator`.
    """
    return aggregator


AggregatorType = Annotated[RepositoryAggregator, Depends(get_aggregator)]
app = FastAPI(
    title='Latest Public Repositories API',
    version='1.0.0',
    lifespan=lifespan,
    )
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=['GET'],
    allow_headers=[
        'Content-Type',
        'Content-Length',
        'Accept-Encoding',
        'Host',
        'Accept',
        'Origin',
        'Cache-Control',
        'X-Requested-With',
        ],
    max_age=12 * 60 * 60,
    )
logger = getLogger(__name__)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError, /):
    """
    Request validation handler which logs errors caused by request validation in detail.
    """
    errors = []
    for d in exc.errors():
        msg = d['msg']
        loc = '.'.join(str(part) for part in d['loc'])  # some parts can be integers
        errors.append(f'At location {loc!r} {msg[0].lower()}{msg[1:]}')

    err_noun = 'error' if len(errors) == 1 else 'errors'
    err_msgs = '\n  '.join(errors)
    logger.error(f'{len(errors)} validation {err_noun} in the recent request:\n  {err_msgs}')
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(AggregationError)
async def aggregation_exception_handler(_: Request, exc: AggregationError, /):
    """
    Handler which converts aggregation errors into responses with a reason code.
    Only the reason code and a generic message reach the client.
    """
    status_code = 429 if isinstance(exc, RateLimitReached) else 500
    logger.error(f'Request failed with code {exc.code}: {exc}')
    return JSONResponse(
        APIError.from_exception(exc).model_dump(),
        status_code=status_code,
        )


@app.get(
    '/repos',
    response_model_exclude_none=True,
    responses={
        429: {'model': APIError, 'description': 'GitHub rate limit is reached'},
        500: {'model': APIError, 'description': 'Repositories cannot be fetched'},
        },
    )
async def api_get_repos(
        *,
        repo_aggregator: AggregatorType,
        owner: str = '',
        license: str = '',
        language: str = '',
        ) -> list[RepositoryView]:
    """
    Returns up to 100 most recently created public repositories
    with the number of bytes written in each language.

    Repositories can be filtered by owner, license and language.
    """
    query = SearchQuery(owner=owner, license=license, language=language)
    records = await repo_aggregator.fetch_latest(query)
    return [RepositoryView.from_record(record) for record in records]
