"""PostgREST Python Client.

A fluent async client for PostgREST servers.

Usage:
    from pgrest import PostgrestClient

    async with PostgrestClient("http://localhost:3000") as client:
        # Query rows
        todos = await client.from_("todos").select("id, task").eq("done", "false").execute()

        # Insert a row
        await client.from_("todos").insert({"task": "write docs"}).execute()

        # Update rows
        await client.from_("todos").update({"done": True}).eq("id", 5).execute()

        # Delete rows
        await client.from_("todos").delete().in_("status", ["stale", "dupe"]).execute()
"""

from .builders import FilterBuilder, QueryBuilder, RequestBuilder, SelectBuilder
from .client import PostgrestClient
from .exceptions import APIError, ConfigurationError, DecodeError, PostgrestError
from .request import RequestState
from .types import CountOption, Operator, PostgrestResponse

__version__ = "0.1.0"
__all__ = [
    "PostgrestClient",
    "QueryBuilder",
    "SelectBuilder",
    "FilterBuilder",
    "RequestBuilder",
    "RequestState",
    "PostgrestError",
    "ConfigurationError",
    "APIError",
    "DecodeError",
    "CountOption",
    "Operator",
    "PostgrestResponse",
]
