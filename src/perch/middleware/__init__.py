"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching::

    def mw(ctx: Context) -> None          # or async def

Middleware run in registration order before the handler. They return
nothing and cannot stop the chain: every middleware of the matched scope
runs, then the handler runs.
"""

from perch.middleware.chain import MiddlewareChain
from perch.middleware.protocol import Middleware

__all__ = [
    "Middleware",
    "MiddlewareChain",
]
