"""Ordered middleware chains.

Two chains take part in every request: the global chain owned by the
root group, then the chain of the group the route was registered on.
"""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from perch._internal.invoke import invoke
from perch.middleware.protocol import Middleware

if TYPE_CHECKING:
    from perch.context import Context


class MiddlewareChain:
    """An ordered, append-only list of middleware.

    Registration order is invocation order. No reordering, no
    deduplication, no priorities. Appending is a setup-time operation;
    once the router is frozen the chain is only read.
    """

    __slots__ = ("_items",)

    def __init__(self, middleware: Iterable[Middleware] = ()) -> None:
        self._items: list[Middleware] = []
        self.extend(middleware)

    def append(self, middleware: Middleware) -> None:
        if not callable(middleware):
            msg = f"middleware must be callable, got {type(middleware).__name__}"
            raise TypeError(msg)
        self._items.append(middleware)

    def extend(self, middleware: Iterable[Middleware]) -> None:
        for mw in middleware:
            self.append(mw)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        names = ", ".join(getattr(mw, "__name__", type(mw).__name__) for mw in self._items)
        return f"MiddlewareChain([{names}])"

    async def run(self, ctx: "Context") -> None:
        """Invoke every middleware in order with *ctx*.

        Sync and async middleware may be mixed. Return values are ignored.
        """
        for mw in self._items:
            await invoke(mw, ctx)
