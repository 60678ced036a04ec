"""Route groups.

A ``Group`` is a path-prefix scope with its own middleware chain. The
root group (empty prefix) owns what every group of the tree shares: the
multiplexer, the global middleware chain, the config and the logger.

Mutable during setup (route registration, middleware). Frozen when the
router starts serving: on ``listen()`` or on the first ASGI call.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.types import ContextFunc
from perch.config import Config
from perch.context import Context
from perch.errors import ConfigurationError
from perch.middleware.chain import MiddlewareChain
from perch.middleware.protocol import Middleware
from perch.routing.adapter import HandlerAdapter
from perch.routing.mux import ServeMux
from perch.routing.route import Route
from perch.server.handler import handle_request
from perch.static import FileServer, gzip_files, strip_prefix


@dataclass(slots=True)
class _Shared:
    """State shared by every group of one tree."""

    config: Config
    logger: logging.Logger
    mux: ServeMux = field(default_factory=ServeMux)
    global_chain: MiddlewareChain = field(default_factory=MiddlewareChain)
    freeze_lock: threading.Lock = field(default_factory=threading.Lock)


class Group:
    """A routing scope: path prefix plus middleware chain.

    Usage::

        router = Group()                      # root: empty prefix
        router.use(request_id)                # global middleware

        @router.get("/")
        def index(ctx):
            ctx.write("home")

        api = router.group("/api", require_token)

        @api.post("/items")
        async def create(ctx):
            ctx.write_json(await ctx.request.json())

        router.listen(":8080")

    Grouping is flat. A request runs the global chain, then the chain of
    the group its route was registered on, and nothing else: a group made
    from another group carries neither that group's prefix nor its chain.

    Thread safety:
        Setup is single-threaded. The freeze uses a Lock + double-check
        so exactly one thread compiles the route table, even when several
        server workers deliver their first request at once. After the
        freeze everything here is read-only.
    """

    __slots__ = ("_shared", "middleware", "prefix")

    def __init__(
        self,
        config: Config | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._shared = _Shared(
            config=config or Config(),
            logger=logger or logging.getLogger("perch"),
        )
        self.prefix = ""
        # Stays empty: use() on the root appends to the global chain.
        self.middleware = MiddlewareChain()

    @classmethod
    def _child(cls, shared: _Shared, prefix: str, middleware: tuple[Middleware, ...]) -> "Group":
        group = cls.__new__(cls)
        group._shared = shared
        group.prefix = prefix
        group.middleware = MiddlewareChain(middleware)
        return group

    def __repr__(self) -> str:
        return f"<Group prefix={self.prefix!r} middleware={len(self.middleware)}>"

    # -- Properties --

    @property
    def is_root(self) -> bool:
        return self.prefix == ""

    @property
    def config(self) -> Config:
        return self._shared.config

    @property
    def logger(self) -> logging.Logger:
        return self._shared.logger

    @property
    def global_middleware(self) -> MiddlewareChain:
        return self._shared.global_chain

    @property
    def routes(self) -> list[Route]:
        """Every route registered on this tree, in registration order."""
        return self._shared.mux.routes

    # -- Groups and middleware --

    def group(self, pattern: str, *middleware: Middleware) -> "Group":
        """Create a group serving routes under *pattern*.

        *pattern* must be non-empty and start with ``/``; anything else
        is logged and raised as ``ConfigurationError``. The new group's
        chain starts with *middleware*, in order.
        """
        self._check_not_frozen()
        if not pattern or not pattern.startswith("/"):
            msg = f"group pattern can't be empty and has to start with '/': {pattern!r}"
            self.logger.error("Group error: %s", msg)
            raise ConfigurationError(msg)
        return Group._child(self._shared, pattern, middleware)

    def use(self, *middleware: Middleware) -> None:
        """Append *middleware* to this group's chain.

        On the root group that chain is the global one and runs for every
        route of the tree.
        """
        self._check_not_frozen()
        if self.is_root:
            self._shared.global_chain.extend(middleware)
        else:
            self.middleware.extend(middleware)

    # -- Route registration --

    def handle(
        self,
        method: str,
        pattern: str,
        handler: ContextFunc | None = None,
    ) -> Any:
        """Register *handler* for *method* on ``prefix + pattern``.

        Works as a plain call or, without *handler*, as a decorator.
        """
        if handler is None:

            def decorator(func: ContextFunc) -> ContextFunc:
                self._register(method, pattern, func)
                return func

            return decorator

        self._register(method, pattern, handler)
        return handler

    def get(self, pattern: str, handler: ContextFunc | None = None) -> Any:
        """Register a GET-only route. See ``handle``."""
        return self.handle("GET", pattern, handler)

    def post(self, pattern: str, handler: ContextFunc | None = None) -> Any:
        """Register a POST-only route. See ``handle``."""
        return self.handle("POST", pattern, handler)

    def put(self, pattern: str, handler: ContextFunc | None = None) -> Any:
        return self.handle("PUT", pattern, handler)

    def delete(self, pattern: str, handler: ContextFunc | None = None) -> Any:
        return self.handle("DELETE", pattern, handler)

    def patch(self, pattern: str, handler: ContextFunc | None = None) -> Any:
        return self.handle("PATCH", pattern, handler)

    def _register(self, method: str, pattern: str, handler: ContextFunc) -> None:
        self._check_not_frozen()
        if not callable(handler):
            msg = f"handler for {method} {pattern!r} must be callable"
            raise TypeError(msg)
        adapter = HandlerAdapter(
            handler,
            method,
            global_chain=self._shared.global_chain,
            group_chain=self.middleware,
            config=self.config,
            logger=self.logger,
        )
        self._shared.mux.add(Route.single(self.prefix + pattern, adapter, adapter.method))

    # -- Static files --

    def serve_files(self, url_path: str, dir_path: str | Path, prefix: str = "") -> None:
        """Serve the files under *dir_path* at *url_path*.

        *prefix* is stripped from the request path before it is resolved
        under *dir_path*. Responses go through ``gzip_files``. *url_path*
        is registered as given, without this group's prefix; end it with
        ``/`` to serve a whole subtree::

            router.serve_files("/static/", "./public", "/static")
        """
        self._check_not_frozen()
        cfg = self.config
        files = FileServer(dir_path, index=cfg.static_index)
        handler = gzip_files(
            strip_prefix(prefix, files),
            cache_control=cfg.static_cache_control,
            level=cfg.gzip_level,
        )
        self._shared.mux.add(Route.single(url_path, handler))

    def serve_favicon(self, file_path: str | Path) -> None:
        """Serve the file at *file_path* for ``GET prefix + /favicon.ico``."""

        async def favicon(ctx: Context) -> None:
            await ctx.serve_file(file_path)

        self.get("/favicon.ico", favicon)

    # -- Server --

    def listen(self, address: str | None = None) -> None:
        """Freeze the routes and serve them on *address* (``"host:port"``).

        Without *address* the config's host and port are used. Blocks
        until the server stops; failures to bind or serve propagate.
        """
        from perch.server.listen import parse_address, run_server

        self._ensure_frozen()
        if address is None:
            host, port = self.config.host, self.config.port
        else:
            host, port = parse_address(address)
        run_server(self, host, port, config=self.config, logger=self.logger)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point, valid on any group of the tree."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            mux=self._shared.mux,
            debug=self.config.debug,
            logger=self.logger,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Freeze at startup, acknowledge shutdown."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self._ensure_frozen()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        mux = self._shared.mux
        if mux.compiled:
            return
        with self._shared.freeze_lock:
            if mux.compiled:
                return
            mux.compile()

    def _check_not_frozen(self) -> None:
        if self._shared.mux.compiled:
            msg = (
                "Cannot modify routes after the router has started serving requests. "
                "Register groups, routes and middleware before calling listen()."
            )
            raise RuntimeError(msg)


def new(config: Config | None = None, *, logger: logging.Logger | None = None) -> Group:
    """Create a root group with a fresh multiplexer and an empty global chain."""
    return Group(config, logger=logger)
