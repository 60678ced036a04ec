"""Handler adapter: puts a context-aware handler behind the multiplexer.

The multiplexer stores raw handlers (``async (Request) -> Response``).
User handlers take a ``Context`` and return nothing. ``HandlerAdapter``
bridges the two and enforces the route's HTTP method.
"""

import logging

from perch._internal.invoke import invoke
from perch._internal.types import ContextFunc
from perch.config import Config
from perch.context import Context, context_var
from perch.http.request import Request
from perch.http.response import Response, not_found
from perch.middleware.chain import MiddlewareChain


class HandlerAdapter:
    """Raw handler wrapping one route registered on one group.

    Per request:

    1. A request with any other method than ``method`` gets a plain 404
       (method gating, not 405).
    2. A fresh ``Context`` is built and published in ``context_var``.
    3. The global chain runs, then the group's own chain, then the handler.
       Nothing can stop this sequence short of an exception.
    4. The context's writer becomes the ``Response``.

    The chains are held by reference, so middleware added to them later
    during setup still applies.
    """

    __slots__ = ("_config", "_logger", "global_chain", "group_chain", "handler", "method")

    def __init__(
        self,
        handler: ContextFunc,
        method: str,
        *,
        global_chain: MiddlewareChain,
        group_chain: MiddlewareChain,
        config: Config,
        logger: logging.Logger,
    ) -> None:
        self.handler = handler
        self.method = method.upper()
        self.global_chain = global_chain
        self.group_chain = group_chain
        self._config = config
        self._logger = logger

    def __repr__(self) -> str:
        name = getattr(self.handler, "__name__", type(self.handler).__name__)
        return f"<HandlerAdapter {self.method} {name}>"

    async def __call__(self, request: Request) -> Response:
        if request.method != self.method:
            return not_found()

        ctx = Context(request, config=self._config, logger=self._logger)
        token = context_var.set(ctx)
        try:
            await self.global_chain.run(ctx)
            await self.group_chain.run(ctx)
            await invoke(self.handler, ctx)
        finally:
            context_var.reset(token)

        return ctx.writer.to_response()
