"""Request state accumulated by the builder chain."""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

READ_METHODS = ("GET", "HEAD")
BODY_METHODS = ("POST", "PATCH")


@dataclass(frozen=True)
class RequestState:
    """Everything needed to issue one PostgREST request.

    Instances are never modified in place; every ``with_*`` method returns
    a new state. Headers are held as a read-only, case-insensitive
    ``httpx.Headers`` copy, so ``prefer`` and ``Prefer`` name one header.
    """

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    schema: str | None = None
    method: str | None = None
    body: Any = None

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(httpx.Headers(self.headers)))

    def with_search_param(self, name: str, value: str) -> "RequestState":
        """Append ``name=value`` after the query parameters already present.

        A URL that cannot be parsed is left as it was; ``execute`` rejects
        it later with ``badURL``.
        """
        try:
            url = httpx.URL(self.url).copy_add_param(name, value)
        except httpx.InvalidURL as e:
            logger.warning("Cannot add %s to %r: %s", name, self.url, e)
            return self
        return replace(self, url=str(url))

    def with_header(self, name: str, value: str) -> "RequestState":
        headers = httpx.Headers(self.headers)
        headers[name] = value
        return replace(self, headers=headers)

    def with_prefer(self, fragment: str) -> "RequestState":
        """Add a fragment to ``Prefer``, comma-joined with any existing value."""
        prefer = self.headers.get("Prefer")
        return self.with_header("Prefer", f"{prefer},{fragment}" if prefer else fragment)

    def with_method(self, method: str) -> "RequestState":
        return replace(self, method=method)

    def with_body(self, body: Any) -> "RequestState":
        return replace(self, body=body)

    @property
    def is_read(self) -> bool:
        return self.method in READ_METHODS


def is_valid_url(url: str) -> bool:
    """Check that ``url`` is an absolute http(s) URL."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)
