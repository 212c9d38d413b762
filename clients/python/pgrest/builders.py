"""Query builder chain for PostgREST requests.

A chain starts at a :class:`QueryBuilder`, picks an operation (select,
insert, upsert, update, delete), optionally narrows it with filters, and
ends with ``await builder.execute()``::

    builder = QueryBuilder("http://localhost:3000/todos")
    response = await builder.select("id, task").eq("done", "false").execute()

Each call returns a new builder; the builder it was called on is left
untouched, so partial chains can be reused.
"""

import json
import logging
from typing import Any, Iterable, Mapping, TypeVar

import httpx

from .exceptions import APIError, ConfigurationError, DecodeError
from .request import BODY_METHODS, RequestState, is_valid_url
from .types import CountOption, Operator, PostgrestResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

MISSING_OPERATION = "Missing table operation: select, insert, update or delete"

RETURN_REPRESENTATION = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates"

_B = TypeVar("_B", bound="RequestBuilder")


class RequestBuilder:
    """Executable stage of the chain.

    Args:
        url: Resource URL, e.g. "http://localhost:3000/todos".
        headers: Headers sent with the request (auth, apikey, ...).
        schema: Database schema to target through the profile headers.
        http_client: Client used to send the request. A short-lived
            client is opened per ``execute`` call when omitted.
    """

    def __init__(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        schema: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._state = RequestState(url=url, headers=headers or {}, schema=schema)
        self._http_client = http_client

    @property
    def state(self) -> RequestState:
        return self._state

    @classmethod
    def from_state(cls: type[_B], state: RequestState, http_client: httpx.AsyncClient | None = None) -> _B:
        """Create a builder that continues from an existing request state."""
        builder = cls(state.url, http_client=http_client)
        builder._state = state
        return builder

    def _next(self, state: RequestState, cls: type[_B] | None = None) -> _B:
        return (cls or type(self)).from_state(state, self._http_client)

    def append_search_param(self: _B, name: str, value: str) -> _B:
        return self._next(self._state.with_search_param(name, value))

    def prepare(self, head: bool = False, count: CountOption | str | None = None) -> RequestState:
        """Derive the final request state, checking it can be sent.

        Raises:
            ConfigurationError: No operation was chosen or the URL is invalid.
        """
        state = self._state

        if head:
            state = state.with_method("HEAD")

        if count is not None:
            state = state.with_prefer(f"count={CountOption(count).value}")

        if not state.method:
            raise ConfigurationError(MISSING_OPERATION)

        if state.is_read:
            state = state.with_header("Content-Type", "application/json")

        if state.schema:
            profile = "Accept-Profile" if state.is_read else "Content-Profile"
            state = state.with_header(profile, state.schema)

        if not is_valid_url(state.url):
            raise ConfigurationError("badURL")

        return state

    async def execute(
        self,
        head: bool = False,
        count: CountOption | str | None = None,
    ) -> PostgrestResponse:
        """Send the request and parse the response.

        Args:
            head: Send a HEAD request instead of the configured method.
            count: Ask the server to report the total row count.

        Returns:
            PostgrestResponse with status, body and count.

        Raises:
            ConfigurationError: The chain is incomplete or the URL is invalid.
            APIError: The server answered with a non-2xx status.
            DecodeError: A HEAD response body is not valid JSON.
            httpx.HTTPError: The transport failed.
        """
        state = self.prepare(head=head, count=count)

        if self._http_client is not None:
            return await _send(self._http_client, state)

        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
            return await _send(client, state)


class FilterBuilder(RequestBuilder):
    """Stage that can narrow the affected rows with filters."""

    def _filter(self: _B, column: str, operator: Operator | str, value: Any) -> _B:
        token = Operator(operator).value
        return self.append_search_param(column, f"{token}.{_format_value(value)}")

    def filter(self: _B, column: str, operator: Operator | str, value: Any) -> _B:
        """Apply any operator, e.g. ``filter("age", "gte", 18)``."""
        return self._filter(column, operator, value)

    def not_(self: _B, column: str, operator: Operator | str, value: Any) -> _B:
        return self.append_search_param(column, f"not.{Operator(operator).value}.{_format_value(value)}")

    def or_(self: _B, filters: str) -> _B:
        """Match any of ``filters``, written in PostgREST syntax.

        Example:
            >>> builder.or_("status.eq.done,priority.gt.3")
        """
        return self.append_search_param("or", f"({filters})")

    def eq(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.EQ, value)

    def neq(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.NEQ, value)

    def gt(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.GT, value)

    def gte(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.GTE, value)

    def lt(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.LT, value)

    def lte(self: _B, column: str, value: Any) -> _B:
        return self._filter(column, Operator.LTE, value)

    def like(self: _B, column: str, pattern: str) -> _B:
        return self._filter(column, Operator.LIKE, pattern)

    def ilike(self: _B, column: str, pattern: str) -> _B:
        return self._filter(column, Operator.ILIKE, pattern)

    def is_(self: _B, column: str, value: Any) -> _B:
        """IS filter; None and booleans map to null, true and false."""
        return self._filter(column, Operator.IS, value)

    def in_(self: _B, column: str, values: Iterable[Any]) -> _B:
        return self._filter(column, Operator.IN, ",".join(_format_value(v) for v in values))

    def contains(self: _B, column: str, value: Any) -> _B:
        """Column contains ``value``.

        Strings are sent as is, lists of strings comma-joined, anything else
        JSON-encoded. A value that cannot be JSON-encoded adds no filter.
        """
        return self._collection_filter(column, Operator.CS, value)

    def contained_by(self: _B, column: str, value: Any) -> _B:
        return self._collection_filter(column, Operator.CD, value)

    def overlaps(self: _B, column: str, value: Any) -> _B:
        return self._collection_filter(column, Operator.OV, value)

    def _collection_filter(self: _B, column: str, operator: Operator, value: Any) -> _B:
        encoded = _encode_collection(value)
        if encoded is None:
            logger.debug("Skipping %s filter on %s: unsupported value %r", operator.value, column, value)
            return self._next(self._state)
        return self._filter(column, operator, encoded)

    # Range tokens follow PostgREST's vocabulary: gte/lte map to nxl/nxr.

    def range_lt(self: _B, column: str, range: str) -> _B:  # noqa: A002
        return self._filter(column, Operator.SL, range)

    def range_gt(self: _B, column: str, range: str) -> _B:  # noqa: A002
        return self._filter(column, Operator.SR, range)

    def range_gte(self: _B, column: str, range: str) -> _B:  # noqa: A002
        return self._filter(column, Operator.NXL, range)

    def range_lte(self: _B, column: str, range: str) -> _B:  # noqa: A002
        return self._filter(column, Operator.NXR, range)

    def range_adjacent(self: _B, column: str, range: str) -> _B:  # noqa: A002
        return self._filter(column, Operator.ADJ, range)

    def text_search(
        self: _B,
        column: str,
        query: str,
        *,
        config: str | None = None,
        type_: str | None = None,
    ) -> _B:
        """Full-text search on a tsvector column.

        Args:
            column: Column to search.
            query: Search query.
            config: Text search configuration, e.g. "english".
            type_: None for to_tsquery, or "plain", "phrase", "websearch".
        """
        operators = {
            None: Operator.FTS,
            "plain": Operator.PLFTS,
            "phrase": Operator.PHFTS,
            "websearch": Operator.WFTS,
        }
        if type_ not in operators:
            raise ValueError(f"Unknown text search type: {type_}")
        token = operators[type_].value
        if config:
            token = f"{token}({config})"
        return self.append_search_param(column, f"{token}.{query}")


class SelectBuilder(FilterBuilder):
    """Stage returned by ``select``: filters plus ordering."""

    def order(
        self,
        column: str,
        *,
        ascending: bool = True,
        nulls_first: bool | None = None,
    ) -> "SelectBuilder":
        value = f"{column}.{'asc' if ascending else 'desc'}"
        if nulls_first is not None:
            value += ".nullsfirst" if nulls_first else ".nullslast"
        return self.append_search_param("order", value)


class QueryBuilder(RequestBuilder):
    """Entry stage: choose the table operation.

    Executing it directly fails with ``ConfigurationError`` since no
    operation has been chosen yet.
    """

    def select(self, columns: str = "*") -> SelectBuilder:
        """Read rows.

        Whitespace outside double-quoted identifiers is dropped, so
        ``' id, "Full Name" '`` is sent as ``id,"Full Name"``.
        """
        state = self._state.with_method("GET")
        return self._next(state.with_search_param("select", _clean_columns(columns)), SelectBuilder)

    def insert(
        self,
        values: dict[str, Any] | list[dict[str, Any]],
        upsert: bool = False,
        on_conflict: str | None = None,
    ) -> RequestBuilder:
        """Insert rows, merging with existing ones on conflict when ``upsert`` is set.

        Args:
            values: Row (or rows) to insert.
            upsert: Merge duplicates instead of failing on conflict.
            on_conflict: Comma-separated columns of the conflict target.
        """
        prefer = f"{RETURN_REPRESENTATION},{MERGE_DUPLICATES}" if upsert else RETURN_REPRESENTATION
        state = self._state.with_method("POST").with_header("Prefer", prefer)
        if on_conflict is not None:
            state = state.with_search_param("on_conflict", on_conflict)
        return self._next(state.with_body(values), RequestBuilder)

    def upsert(
        self,
        values: dict[str, Any] | list[dict[str, Any]],
        on_conflict: str | None = None,
    ) -> RequestBuilder:
        return self.insert(values, upsert=True, on_conflict=on_conflict)

    def update(self, values: dict[str, Any]) -> FilterBuilder:
        state = (
            self._state.with_method("PATCH")
            .with_header("Prefer", RETURN_REPRESENTATION)
            .with_body(values)
        )
        return self._next(state, FilterBuilder)

    def delete(self) -> FilterBuilder:
        state = (
            self._state.with_method("DELETE")
            .with_header("Prefer", RETURN_REPRESENTATION)
            .with_body(None)
        )
        return self._next(state, FilterBuilder)


def parse_response(
    content: bytes,
    status: int,
    headers: Mapping[str, str],
    *,
    method: str | None,
) -> PostgrestResponse:
    """Turn a raw HTTP response into a PostgrestResponse.

    Raises:
        APIError: ``status`` is outside 2xx.
        DecodeError: A HEAD body is not valid JSON.
    """
    headers = httpx.Headers(headers)

    if not 200 <= status < 300:
        raise _api_error(content, status)

    body: Any = content or None
    if content and method == "HEAD" and headers.get("Accept") != "text/csv":
        try:
            body = json.loads(content)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON in response body: {e}") from e

    return PostgrestResponse(
        body=body,
        status=status,
        count=_parse_count(headers.get("content-range")),
    )


async def _send(client: httpx.AsyncClient, state: RequestState) -> PostgrestResponse:
    logger.debug("%s %s", state.method, state.url)
    response = await client.request(
        state.method,
        state.url,
        headers=httpx.Headers(state.headers),
        json=state.body if state.method in BODY_METHODS else None,
    )
    logger.debug("%s %s -> %d", state.method, state.url, response.status_code)
    return parse_response(
        response.content,
        response.status_code,
        response.headers,
        method=state.method,
    )


def _api_error(content: bytes, status: int) -> APIError:
    try:
        data = json.loads(content) if content else None
    except ValueError:
        data = None

    error = APIError.from_dict(data, status=status) if isinstance(data, dict) else None
    return error or APIError("failed to get error", status=status)


def _parse_count(content_range: str | None) -> int | None:
    """Read the total from a ``start-end/total`` content-range value."""
    if not content_range:
        return None
    total = content_range.split("/")[-1]
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


def _format_value(value: Any) -> str:
    """Render a filter value as a PostgREST literal (None -> null, True -> true)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _clean_columns(columns: str) -> str:
    quoted = False
    cleaned = []
    for char in columns:
        if char.isspace() and not quoted:
            continue
        if char == '"':
            quoted = not quoted
        cleaned.append(char)
    return "".join(cleaned)


def _encode_collection(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return ",".join(value)
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError):
        return None
