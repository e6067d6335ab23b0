from logging import getLogger
from typing import Any, final

import httpx
from pydantic import TypeAdapter, ValidationError

from common.errors import FetchError, RateLimitReached
from common.models import LanguagesType
from .models import RateLimitStatus, Settings

logger = getLogger(__name__)
_headers = {
    'Accept':               'application/vnd.github+json',
    'X-GitHub-Api-Version': '2022-11-28',
    }
_languages_adapter = TypeAdapter(LanguagesType)

SEARCH_PAGE_SIZE = 100
"""
The maximum number of repositories GitHub returns on a single search page.
"""


def make_headers(github_token: str | None, /) -> dict[str, str]:
    """
    Creates default headers for GitHub API.
    If a token is given, adds it to the headers for increasing rate limits.
    """
    headers = dict(_headers)
    if github_token:
        headers['Authorization'] = f'Bearer {github_token}'

    return headers


def make_http_client(settings: Settings, /, **kwargs) -> httpx.AsyncClient:
    """
    Creates an HTTP client for GitHub API configured from the given settings.
    Extra keyword arguments are passed to :class:`httpx.AsyncClient`.
    """
    return httpx.AsyncClient(
        base_url=settings.github_api_url,
        headers=make_headers(settings.github_token),
        timeout=settings.request_timeout,
        **kwargs,
        )


def is_rate_limited(response: httpx.Response, /) -> bool:
    """
    Checks whether the response signals that GitHub rate limit is exhausted.
    """
    # https://docs.github.com/en/rest/using-the-rest-api/rate-limits-for-the-rest-api?apiVersion=2022-11-28#exceeding-the-rate-limit
    if response.status_code == 429:
        return True

    if response.status_code == 403:
        if response.headers.get('X-RateLimit-Remaining') == '0':
            return True

        return 'rate limit' in response.text.lower()

    return False


@final
class GitHubClient:
    """
    A class for requesting GitHub REST API.
    Every failure is translated into :class:`RateLimitReached` or :class:`FetchError`.
    """
    def __init__(self, http: httpx.AsyncClient, /) -> None:
        self._http = http

    async def request_data(self, path: str, /, params: dict[str, Any] | None = None) -> Any:
        """
        Requests the given path of GitHub API and returns JSON data from the response.
        """
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f'{e.__class__.__name__} ({e}) for {path!r}')
            raise FetchError(f'request to {path!r} failed') from e

        if is_rate_limited(response):
            logger.warning(f'GitHub rate limit is reached for {str(response.url)!r}')
            raise RateLimitReached(f'GitHub refused {path!r} due to rate limit')

        if response.is_error:
            logger.error(
                f'HTTPError {response.status_code} ({response.reason_phrase}) '
                f'for {str(response.url)!r}'
                )
            raise FetchError(f'request to {path!r} returned {response.status_code}')

        try:
            return response.json()
        except ValueError as e:
            logger.error(f'Response for {str(response.url)!r} is not valid JSON')
            raise FetchError(f'response of {path!r} is not valid JSON') from e

    async def search_repositories(
            self,
            query: str,
            /,
            *,
            sort: str = 'created',
            order: str = 'desc',
            page: int = 1,
            per_page: int = SEARCH_PAGE_SIZE,
            ) -> list[dict[str, Any]]:
        """
        Searches repositories matching the query and returns raw items of the requested page.
        """
        # Response schema:
        # https://docs.github.com/en/rest/search/search?apiVersion=2022-11-28#search-repositories
        data = await self.request_data(
            '/search/repositories',
            params=dict(q=query, sort=sort, order=order, page=page, per_page=per_page),
            )
        items = data.get('items') if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.error(f'Search response for {query!r} has no list of items')
            raise FetchError('search response has unexpected format')

        return items

    async def list_languages(self, owner: str, repo: str, /) -> LanguagesType:
        """
        Requests the number of bytes written in each language of the repository.
        """
        # Response schema:
        # https://docs.github.com/en/rest/repos/repos?apiVersion=2022-11-28#list-repository-languages
        path = f'/repos/{owner}/{repo}/languages'
        data = await self.request_data(path)
        try:
            return _languages_adapter.validate_python(data)
        except ValidationError as e:
            logger.error(str(e))
            raise FetchError(f'response of {path!r} has unexpected format') from e

    async def fetch_rate_limit(self, /) -> RateLimitStatus:
        """
        Requests the current core rate limit.
        This request does not count against the limit.
        """
        # Response schema:
        # https://docs.github.com/en/rest/rate-limit/rate-limit?apiVersion=2022-11-28#get-rate-limit-status-for-the-authenticated-user
        data = await self.request_data('/rate_limit')
        try:
            return RateLimitStatus.model_validate(data['resources']['core'])
        except (KeyError, TypeError, ValidationError) as e:
            logger.error(f'Rate limit response has unexpected format: {e}')
            raise FetchError('rate limit response has unexpected format') from e


__all__ = (
    'SEARCH_PAGE_SIZE',
    'make_headers',
    'make_http_client',
    'is_rate_limited',
    'GitHubClient',
    )
