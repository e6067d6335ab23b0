"""Shared helpers for faking GitHub API."""
import json
from collections import Counter
from collections.abc import Callable
from typing import Any

import httpx

GITHUB_URL = 'https://api.github.com'


def make_item(
        repo_id: int,
        owner: str | None,
        name: str,
        language: str | None = None,
        license_key: str | None = None,
        ) -> dict[str, Any]:
    """Build a repository object the way GitHub search returns it."""
    item = {
        'id': repo_id,
        'full_name': f'{owner}/{name}',
        'owner': {'login': owner} if owner is not None else None,
        'name': name,
        'language': language,
        'license': {'key': license_key, 'name': license_key} if license_key else None,
        }
    return item


class FakeGitHub:
    """Routes requests to canned responses and counts calls per path."""

    def __init__(
            self,
            items: list[dict[str, Any]] | None = None,
            languages: dict[str, dict[str, int]] | None = None,
            core: dict[str, int] | None = None,
            ) -> None:
        self.items = items or []
        self.languages = languages or {}
        self.core = core or {'limit': 60, 'remaining': 60, 'reset': 0}
        self.calls = Counter()
        self.requests: list[httpx.Request] = []
        self.overrides: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    @property
    def language_calls(self) -> int:
        return sum(n for path, n in self.calls.items() if path.endswith('/languages'))

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        self.requests.append(request)

        if path in self.overrides:
            return self.overrides[path](request)

        if path == '/search/repositories':
            return httpx.Response(200, json={'total_count': len(self.items), 'items': self.items})

        if path == '/rate_limit':
            return httpx.Response(200, json={'resources': {'core': self.core}})

        if path.endswith('/languages'):
            full_name = path.removeprefix('/repos/').removesuffix('/languages')
            if full_name in self.languages:
                return httpx.Response(200, json=self.languages[full_name])

        return httpx.Response(404, json={'message': 'Not Found'})

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle), base_url=GITHUB_URL)


def rate_limited(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        403,
        headers={'X-RateLimit-Remaining': '0'},
        content=json.dumps({'message': 'API rate limit exceeded'}).encode(),
        )
