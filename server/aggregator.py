from logging import getLogger
from typing import final

from common.errors import RateLimitReached
from common.models import RepositoryRecord, SearchQuery
from .enrichment import *
from .github import GitHubClient
from .ratelimit import RateLimiter
from .search import search_latest_repositories

logger = getLogger(__name__)


@final
class RepositoryAggregator:
    """
    A class for fetching the latest public repositories together with their languages.

    Every request to GitHub is admitted by the shared rate limiter beforehand.
    Languages are requested only if the budget allows requesting all of them,
    so a result never mixes enriched and non-enriched repositories
    because of the rate limit.
    """
    def __init__(
            self,
            client: GitHubClient,
            rate_limiter: RateLimiter,
            /,
            *,
            max_parallel_tasks: int = DEFAULT_MAX_PARALLEL_TASKS,
            ) -> None:
        self._client = client
        self._rate_limiter = rate_limiter
        self._max_parallel_tasks = max_parallel_tasks
        self._fetch_languages = make_language_fetcher(client)

    @property
    def rate_limiter(self, /) -> RateLimiter:
        return self._rate_limiter

    async def fetch_latest(self, query: SearchQuery, /) -> list[RepositoryRecord]:
        """
        Fetches up to 100 most recently created public repositories matching the query
        and their languages.

        :raises RateLimitReached: If the budget does not allow the search
          or requesting languages for all found repositories.
        :raises InvalidDataFound: If GitHub returned an invalid repository.
        :raises FetchError: If the search request failed.
        """
        if not self._rate_limiter.allow():
            logger.warning('Search is refused by the local rate limiter')
            raise RateLimitReached('no budget left for the search request')

        records = await search_latest_repositories(self._client, query)

        required = sum(1 for record in records if needs_languages(record))
        if not self._rate_limiter.allow_n(required):
            logger.warning(
                f'Requesting languages for {required} repositories '
                f'is refused by the local rate limiter'
                )
            raise RateLimitReached(f'no budget left for {required} language requests')

        return await enrich_languages(
            records,
            self._fetch_languages,
            max_parallel_tasks=self._max_parallel_tasks,
            )


__all__ = 'RepositoryAggregator',
