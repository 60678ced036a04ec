"""Middleware protocol.

A middleware is any callable matching::

    def my_mw(ctx: Context) -> None: ...
    async def my_mw(ctx: Context) -> None: ...

No base class required. The chain checks the shape, not the lineage.
Route handlers have exactly the same shape.
"""

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from perch.context import Context


class Middleware(Protocol):
    """Protocol for perch middleware and handlers.

    Accepts both functions and callable objects::

        # Function middleware
        def request_id(ctx: Context) -> None:
            ctx.set_value("request_id", ctx.headers.get("x-request-id", ""))

        # Class middleware
        class Stamp:
            def __init__(self, value: str) -> None:
                self.value = value

            async def __call__(self, ctx: Context) -> None:
                ctx.set_header("X-Stamp", self.value)
    """

    def __call__(self, ctx: "Context") -> None | Awaitable[None]: ...
