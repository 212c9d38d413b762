"""Shared fixtures for the PostgREST client tests."""

import asyncio
import json

import httpx
import pytest

from pgrest import QueryBuilder

BASE_URL = "http://localhost:3000/todos"


class FakeServer:
    """Records requests and answers each one with a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.content = b"[]"
        self.headers: dict[str, str] = {}
        self.error: Exception | None = None

    def respond(self, status=200, body=None, content=None, headers=None):
        self.status = status
        if body is not None:
            self.content = json.dumps(body).encode()
        elif content is not None:
            self.content = content
        self.headers = headers or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, content=self.content, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def run(server):
    """Build a chain on a QueryBuilder wired to the fake server and execute it."""

    def _run(build, headers=None, schema=None, url=BASE_URL, **execute_kwargs):
        async def main():
            transport = httpx.MockTransport(server)
            async with httpx.AsyncClient(transport=transport) as http:
                builder = build(QueryBuilder(url, headers=headers, schema=schema, http_client=http))
                return await builder.execute(**execute_kwargs)

        return asyncio.run(main())

    return _run


@pytest.fixture
def builder():
    return QueryBuilder(BASE_URL)
