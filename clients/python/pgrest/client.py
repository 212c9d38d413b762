"""PostgREST HTTP client."""

from typing import Any, Mapping

import httpx

from .builders import DEFAULT_TIMEOUT, QueryBuilder


class PostgrestClient:
    """Async client for a PostgREST server.

    Args:
        base_url: Base URL of the PostgREST server (e.g., "http://localhost:3000").
        headers: Headers sent with every request, e.g. Authorization.
        schema: Non-default database schema to query.
        timeout: Request timeout in seconds.
        http_client: Pre-configured client to send requests with. The
            client is then owned by the caller and not closed by ``aclose``.

    Example:
        >>> async with PostgrestClient("http://localhost:3000") as client:
        ...     response = await client.from_("todos").select("id,task").eq("done", "false").execute()
        ...     print(response.count, response.json())
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        headers: Mapping[str, str] | None = None,
        schema: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.schema = schema
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PostgrestClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def from_(self, table: str) -> QueryBuilder:
        """Start a request against ``table``.

        Returns:
            QueryBuilder on which to pick select, insert, upsert, update or delete.
        """
        return QueryBuilder(
            f"{self.base_url}/{table}",
            headers=self.headers,
            schema=self.schema,
            http_client=self._client,
        )
