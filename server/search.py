from logging import getLogger
from typing import Any

from pydantic import ValidationError

from common.errors import InvalidDataFound
from common.models import RepositoryRecord, SearchQuery
from .github import SEARCH_PAGE_SIZE, GitHubClient

logger = getLogger(__name__)


def parse_repository(item: Any, /) -> RepositoryRecord:
    """
    Parses a repository object from GitHub search into :class:`RepositoryRecord`.
    Raises :class:`InvalidDataFound` if any required field is absent or empty.
    """
    if not isinstance(item, dict):
        raise InvalidDataFound(f'repository entry must be an object, got {item!r}')

    owner = item.get('owner')
    license_ = item.get('license')
    try:
        return RepositoryRecord(
            id=item.get('id'),
            full_name=item.get('full_name'),
            owner=owner.get('login') if isinstance(owner, dict) else None,
            name=item.get('name'),
            license=license_.get('key') if isinstance(license_, dict) else None,
            primary_language=item.get('language'),
            )
    except ValidationError as e:
        logger.error(f'Invalid repository {item.get("full_name")!r}: {e}')
        raise InvalidDataFound(f'repository {item.get("id")!r} has invalid data') from e


async def search_latest_repositories(
        client: GitHubClient,
        query: SearchQuery,
        /,
        ) -> list[RepositoryRecord]:
    """
    Requests the most recently created public repositories matching the query.
    Only the first page is requested.
    If any repository is invalid, the whole batch is rejected.
    """
    items = await client.search_repositories(
        query.to_query(),
        sort='created',
        order='desc',
        page=1,
        per_page=SEARCH_PAGE_SIZE,
        )
    records = [parse_repository(item) for item in items]
    logger.info(f'Search for {query.to_query()!r} returned {len(records)} repositories')
    return records


__all__ = 'parse_repository', 'search_latest_repositories'
