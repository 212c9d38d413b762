"""Type definitions for the PostgREST client."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .exceptions import PostgrestError


class CountOption(str, Enum):
    """Row counting strategy requested through ``Prefer: count=...``."""

    EXACT = "exact"
    PLANNED = "planned"
    ESTIMATED = "estimated"


class Operator(str, Enum):
    """PostgREST filter operator tokens."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IS = "is"
    IN = "in"
    CS = "cs"
    CD = "cd"
    SL = "sl"
    SR = "sr"
    NXL = "nxl"
    NXR = "nxr"
    ADJ = "adj"
    OV = "ov"
    FTS = "fts"
    PLFTS = "plfts"
    PHFTS = "phfts"
    WFTS = "wfts"


@dataclass(frozen=True)
class PostgrestResponse:
    """Result of an executed request.

    ``body`` is the raw payload for reads and writes, the decoded JSON
    value for HEAD requests, and None when the server sent no payload.
    """

    body: Any
    status: int | None = None
    count: int | None = None
    error: PostgrestError | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PostgrestResponse":
        """Create PostgrestResponse from a plain mapping.

        Raises:
            ValueError: If ``data`` has no ``body`` key.
        """
        if "body" not in data:
            raise ValueError("response mapping has no 'body'")

        status = data.get("status")
        count = data.get("count")
        error = data.get("error")

        return cls(
            body=data["body"],
            status=status if isinstance(status, int) else None,
            count=count if isinstance(count, int) else None,
            error=PostgrestError.from_dict(error) if isinstance(error, Mapping) else None,
        )

    def json(self) -> Any:
        """Decode a raw bytes body; already decoded bodies are returned as is."""
        if isinstance(self.body, (bytes, bytearray)):
            return json.loads(self.body) if self.body else None
        return self.body
