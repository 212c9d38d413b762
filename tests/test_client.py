"""Tests for PostgrestClient."""

import asyncio

import httpx

from pgrest import PostgrestClient, QueryBuilder


class TestPostgrestClient:
    """Tests for the client entry point."""

    def test_from_builds_table_url(self):
        client = PostgrestClient("http://localhost:3000/", headers={"apikey": "k"}, schema="app")

        builder = client.from_("todos")

        assert isinstance(builder, QueryBuilder)
        assert builder.state.url == "http://localhost:3000/todos"
        assert builder.state.headers == {"apikey": "k"}
        assert builder.state.schema == "app"

        asyncio.run(client.aclose())

    def test_builders_do_not_share_headers(self):
        client = PostgrestClient("http://localhost:3000")

        first = client.from_("todos").insert({"id": 1})
        second = client.from_("todos")

        assert "Prefer" in first.state.headers
        assert second.state.headers == {}
        assert client.headers == {}

        asyncio.run(client.aclose())

    def test_request_through_client(self, server):
        server.respond(content=b'[{"id": 1}]', headers={"content-range": "0-0/1"})

        async def main():
            http = httpx.AsyncClient(transport=httpx.MockTransport(server))
            async with PostgrestClient("http://localhost:3000", http_client=http) as client:
                response = await client.from_("todos").select("id").order("id").execute()
            assert not http.is_closed
            await http.aclose()
            return response

        response = asyncio.run(main())

        assert server.last.url.path == "/todos"
        assert server.last.url.params["order"] == "id.asc"
        assert response.count == 1
        assert response.json() == [{"id": 1}]

    def test_owned_client_is_closed(self):
        async def main():
            async with PostgrestClient() as client:
                pass
            return client._client.is_closed

        assert asyncio.run(main())
