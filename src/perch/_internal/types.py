"""Shared type aliases used across perch modules."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from perch.context import Context
    from perch.http.request import Request
    from perch.http.response import Response

# Context-aware handler or middleware: ``def fn(ctx) -> None`` (sync or async)
ContextFunc: TypeAlias = Callable[["Context"], Any]

# What the multiplexer stores: ``async def raw(request) -> Response``
RawHandler: TypeAlias = Callable[["Request"], Awaitable["Response"]]
