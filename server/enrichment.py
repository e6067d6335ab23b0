import asyncio
from collections.abc import Awaitable, Callable, Sequence
from logging import getLogger

from common.errors import AggregationError
from common.models import LanguageResult, LanguagesType, RepositoryRecord
from .github import GitHubClient

logger = getLogger(__name__)

DEFAULT_MAX_PARALLEL_TASKS = 8

LanguageFetcher = Callable[[RepositoryRecord], Awaitable[LanguagesType]]


def needs_languages(record: RepositoryRecord, /) -> bool:
    """
    Checks whether languages of the repository must be requested.
    Repositories without a primary language have no languages to report.
    """
    return record.primary_language is not None


def make_language_fetcher(client: GitHubClient, /) -> LanguageFetcher:
    """
    Creates a function which requests languages of a single repository.
    """
    async def fetch_languages(record: RepositoryRecord, /) -> LanguagesType:
        return await client.list_languages(record.owner, record.name)

    return fetch_languages


async def _language_worker(
        record: RepositoryRecord,
        fetch: LanguageFetcher,
        slots: asyncio.Semaphore,
        results: asyncio.Queue[LanguageResult],
        /,
        ) -> None:
    # The slot is acquired by the dispatcher
    try:
        languages = await fetch(record)
    except AggregationError as e:
        # The repository keeps empty languages, the batch is not aborted
        logger.error(
            f'Failed to fetch languages of {record.full_name!r} '
            f'with code {e.code}: {e}'
            )
    else:
        results.put_nowait(LanguageResult(repository_id=record.id, languages=languages))
    finally:
        slots.release()


def merge_languages(
        records: Sequence[RepositoryRecord],
        results: asyncio.Queue[LanguageResult],
        /,
        ) -> list[RepositoryRecord]:
    """
    Drains the queue and returns copies of records with their languages set.
    Order of records is preserved; records without a result get empty languages.
    """
    by_id: dict[int, LanguagesType] = {}
    while not results.empty():
        result = results.get_nowait()
        by_id[result.repository_id] = result.languages

    return [
        record.model_copy(update=dict(languages=dict(by_id.get(record.id, {}))))
        for record in records
        ]


async def enrich_languages(
        records: Sequence[RepositoryRecord],
        fetch: LanguageFetcher,
        /,
        *,
        max_parallel_tasks: int = DEFAULT_MAX_PARALLEL_TASKS,
        ) -> list[RepositoryRecord]:
    """
    Requests languages for every repository concurrently
    and returns the repositories with languages filled in the input order.

    At most ``max_parallel_tasks`` requests are in flight at any moment.
    Repositories without a primary language get empty languages
    without any request. If a request fails, the error is logged
    and the repository keeps empty languages.

    :param records: Repositories to enrich.
    :param fetch: An async function returning languages of a repository.
    :param max_parallel_tasks: The maximum number of simultaneous requests.
    """
    if max_parallel_tasks < 1:
        raise ValueError(f'max_parallel_tasks must be positive, got {max_parallel_tasks!r}')

    # Sized to fit every result, so workers never wait on a full queue
    results: asyncio.Queue[LanguageResult] = asyncio.Queue(maxsize=len(records) or 1)
    slots = asyncio.Semaphore(max_parallel_tasks)
    dispatched = 0

    async with asyncio.TaskGroup() as group:
        for record in records:
            if not needs_languages(record):
                results.put_nowait(LanguageResult(repository_id=record.id, languages={}))
                continue

            await slots.acquire()
            group.create_task(_language_worker(record, fetch, slots, results))
            dispatched += 1

    # All workers are done at this point, nothing is written to the queue anymore
    logger.debug(
        f'Collected {results.qsize()} language results for {len(records)} repositories, '
        f'{dispatched} requests made'
        )
    return merge_languages(records, results)


__all__ = (
    'DEFAULT_MAX_PARALLEL_TASKS',
    'LanguageFetcher',
    'needs_languages',
    'make_language_fetcher',
    'merge_languages',
    'enrich_languages',
    )
