"""PostgREST client exceptions."""

from typing import Any, Mapping


class PostgrestError(Exception):
    """Base exception for PostgREST errors.

    Carries the fields PostgREST reports in its JSON error bodies. Local
    failures only set ``message``.
    """

    def __init__(
        self,
        message: str,
        details: str | None = None,
        hint: str | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.hint = hint
        self.code = code

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs: Any) -> "PostgrestError | None":
        """Create an error from a decoded PostgREST error body.

        Only ``message`` is required; PostgREST leaves ``details``, ``hint``
        and ``code`` out (or null) for some errors.

        Returns:
            The error, or None if ``data`` has no string ``message``.
        """
        message = data.get("message")
        if not isinstance(message, str):
            return None

        def _optional(key: str) -> str | None:
            value = data.get(key)
            return value if isinstance(value, str) else None

        return cls(
            message,
            details=_optional("details"),
            hint=_optional("hint"),
            code=_optional("code"),
            **kwargs,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "message": self.message,
            "details": self.details,
            "hint": self.hint,
            "code": self.code,
        }


class ConfigurationError(PostgrestError):
    """Request could not be built (missing operation, malformed URL)."""

    pass


class APIError(PostgrestError):
    """Server answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        details: str | None = None,
        hint: str | None = None,
        code: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message, details=details, hint=hint, code=code)
        self.status = status


class DecodeError(PostgrestError):
    """Successful response body could not be decoded as JSON."""

    pass
