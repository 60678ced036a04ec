"""Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from perch._internal.types import RawHandler
from perch.errors import ConfigurationError

ANY_METHOD = "*"


@dataclass(frozen=True, slots=True)
class Route:
    """A registered pattern and the raw handler(s) behind it.

    ``handlers`` maps an HTTP method (or ``ANY_METHOD`` for mounts such
    as static files) to a raw handler. A pattern is registered once per
    method; registering the same (method, pattern) pair twice is a
    configuration error.
    """

    pattern: str
    handlers: Mapping[str, RawHandler] = field(default_factory=dict)

    @classmethod
    def single(cls, pattern: str, handler: RawHandler, method: str | None = None) -> Route:
        return cls(pattern, MappingProxyType({method or ANY_METHOD: handler}))

    @property
    def methods(self) -> frozenset[str]:
        return frozenset(self.handlers)

    @property
    def is_subtree(self) -> bool:
        """True for rooted subtree patterns (``/static/``) that match descendants."""
        return self.pattern.endswith("/")

    def merged(self, other: Route) -> Route:
        """Combine two registrations of the same pattern.

        Raises ``ConfigurationError`` if they overlap on a method or
        either of them accepts any method.
        """
        overlap = self.methods & other.methods
        if overlap or ANY_METHOD in self.methods or ANY_METHOD in other.methods:
            msg = f"multiple registrations for {self.pattern!r}"
            raise ConfigurationError(msg)
        return Route(self.pattern, MappingProxyType({**self.handlers, **other.handlers}))

    def handler_for(self, method: str) -> RawHandler:
        """Pick the handler for *method*.

        Falls back to the method-agnostic handler, then to the first
        registered one, whose adapter answers the mismatch with a 404.
        """
        handler = self.handlers.get(method) or self.handlers.get(ANY_METHOD)
        if handler is None:
            handler = next(iter(self.handlers.values()))
        return handler


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful lookup: a route, or a redirect target."""

    route: Route | None = None
    redirect: str | None = None
