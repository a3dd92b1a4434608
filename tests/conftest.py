"""Pytest configuration and shared fixtures for all tests."""

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from core.cache import DiskCache


@pytest.fixture(autouse=True)
def hermetic_http(monkeypatch):
    """Keep retries instant and ignore any tokens set in the environment."""
    monkeypatch.setattr("fetchers.http.HTTP_RETRY_ATTEMPTS", 1)
    monkeypatch.setattr("fetchers.http.HTTP_RETRY_MAX_WAIT", 0)
    monkeypatch.setattr("fetchers.github.GITHUB_TOKEN", "")
    monkeypatch.setattr("fetchers.gitlab.GITLAB_TOKEN", "")


@pytest.fixture
def cache(tmp_path):
    return DiskCache(str(tmp_path / "cache"))


class FakeRemote:
    """Routes requests by raw path to canned (status, json) answers."""

    def __init__(self, routes: Dict[str, Tuple[int, Any]] | None = None):
        self.routes = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode("ascii")
        if path not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        status, body = self.routes[path]
        if isinstance(body, Exception):
            raise body
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})

    @property
    def paths(self) -> List[str]:
        return [r.url.raw_path.decode("ascii") for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())


@pytest.fixture
def remote():
    return FakeRemote()
