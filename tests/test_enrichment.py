"""Tests for concurrent enrichment with languages."""
import asyncio
import random

import pytest

from common.errors import FetchError
from common.models import RepositoryRecord
from conftest import FakeGitHub
from server.enrichment import enrich_languages, make_language_fetcher
from server.github import GitHubClient


def make_record(repo_id: int, language: str | None = 'Go') -> RepositoryRecord:
    return RepositoryRecord(
        id=repo_id,
        full_name=f'owner{repo_id}/repo{repo_id}',
        owner=f'owner{repo_id}',
        name=f'repo{repo_id}',
        primary_language=language,
        )


class RecordingFetcher:
    """Returns languages after a random delay and tracks concurrency."""

    def __init__(self, fail_ids=()) -> None:
        self.fail_ids = set(fail_ids)
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, record: RepositoryRecord) -> dict[str, int]:
        self.calls.append(record.id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(random.uniform(0, 0.01))
            if record.id in self.fail_ids:
                raise FetchError(f'cannot fetch {record.id}')

            return {record.primary_language: record.id * 10}
        finally:
            self.in_flight -= 1


def test_single_repository():
    fetcher = RecordingFetcher()

    result = asyncio.run(enrich_languages([make_record(1)], fetcher))

    assert len(result) == 1
    assert result[0].languages == {'Go': 10}
    assert fetcher.calls == [1]


@pytest.mark.parametrize('seed', range(5))
def test_output_preserves_input_order(seed):
    """Test that completion order does not affect output order."""
    random.seed(seed)
    records = [make_record(i) for i in random.sample(range(1, 200), 40)]
    fetcher = RecordingFetcher()

    result = asyncio.run(enrich_languages(records, fetcher, max_parallel_tasks=4))

    assert [r.id for r in result] == [r.id for r in records]
    for record in result:
        assert record.languages == {'Go': record.id * 10}


def test_repositories_without_language_are_not_requested():
    records = [make_record(i, language=None) for i in range(1, 6)]
    fetcher = RecordingFetcher()

    result = asyncio.run(enrich_languages(records, fetcher))

    assert [r.id for r in result] == [1, 2, 3, 4, 5]
    assert all(r.languages == {} for r in result)
    assert fetcher.calls == []


def test_mixed_repositories():
    records = [make_record(1), make_record(2, language=None), make_record(3, language='Java')]
    fetcher = RecordingFetcher()

    result = asyncio.run(enrich_languages(records, fetcher))

    assert [r.languages for r in result] == [{'Go': 10}, {}, {'Java': 30}]
    assert sorted(fetcher.calls) == [1, 3]


def test_concurrency_ceiling():
    records = [make_record(i) for i in range(1, 31)]
    fetcher = RecordingFetcher()

    asyncio.run(enrich_languages(records, fetcher, max_parallel_tasks=3))

    assert len(fetcher.calls) == 30
    assert fetcher.max_in_flight <= 3


def test_failed_request_keeps_empty_languages():
    """Test that a single failure degrades only its own repository."""
    records = [make_record(i) for i in range(1, 5)]
    fetcher = RecordingFetcher(fail_ids={2})

    result = asyncio.run(enrich_languages(records, fetcher))

    assert [r.languages for r in result] == [{'Go': 10}, {}, {'Go': 30}, {'Go': 40}]


def test_empty_input():
    assert asyncio.run(enrich_languages([], RecordingFetcher())) == []


def test_invalid_ceiling():
    with pytest.raises(ValueError):
        asyncio.run(enrich_languages([make_record(1)], RecordingFetcher(), max_parallel_tasks=0))


def test_originals_are_not_modified():
    records = [make_record(1)]

    result = asyncio.run(enrich_languages(records, RecordingFetcher()))

    assert records[0].languages == {}
    assert result[0] is not records[0]


def test_language_fetcher_uses_owner_and_name():
    fake = FakeGitHub(languages={'owner1/repo1': {'Go': 10000, 'HTML': 500}})

    async def main():
        async with fake.http_client() as http:
            fetch = make_language_fetcher(GitHubClient(http))
            return await enrich_languages([make_record(1), make_record(2, None)], fetch)

    result = asyncio.run(main())

    assert result[0].languages == {'Go': 10000, 'HTML': 500}
    assert result[1].languages == {}
    assert fake.language_calls == 1
