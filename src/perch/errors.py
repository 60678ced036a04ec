"""Perch exception hierarchy.

Shared across the multiplexer, groups, contexts and the ASGI handler so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when routing setup is invalid.

    Invalid group patterns, duplicate route patterns and a missing
    server dependency all end up here, at setup time.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the multiplexer or by handlers. The ASGI handler catches
    these and answers with a plain-text response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no pattern matched, or the method did not match the route."""

    def __init__(self, detail: str = "404 page not found") -> None:
        super().__init__(status=404, detail=detail)


class SessionNotFound(PerchError, LookupError):  # noqa: N818
    """The named session cookie is not present on the request."""

    def __init__(self, name: str) -> None:
        super().__init__(f"session cookie {name!r} not present")
        self.name = name


class ContextValueTypeError(PerchError, TypeError):
    """A request-scoped value exists but is not of the requested type."""

    def __init__(self, key: str, expected: type, actual: object) -> None:
        super().__init__(
            f"context value {key!r} is {type(actual).__name__}, expected {expected.__name__}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual
