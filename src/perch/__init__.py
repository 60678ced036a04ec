"""Perch: a small HTTP router with route groups and middleware chains.

Groups share one path multiplexer and one global middleware chain; each
group adds its own prefix and chain. Handlers receive a ``Context``.

Basic usage::

    import perch

    router = perch.new()
    router.use(request_logger)

    @router.get("/")
    def index(ctx):
        ctx.write("Hello, World!")

    api = router.group("/api", require_token)

    @api.get("/status")
    def status(ctx):
        ctx.write_json({"ok": True})

    router.serve_files("/static/", "./public", "/static")
    router.listen(":8080")

Serving needs the server extra (``pip install perch[server]``); any
ASGI server can run a ``Group`` directly.
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "Config",
    "ConfigurationError",
    "Context",
    "ContextValueTypeError",
    "Cookie",
    "FileServer",
    "Group",
    "HTTPError",
    "Middleware",
    "MiddlewareChain",
    "NotFound",
    "PerchError",
    "Request",
    "Response",
    "SessionNotFound",
    "get_context",
    "gzip_files",
    "new",
    "serve_file",
    "strip_prefix",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name in ("Group", "new"):
        from perch import group as _group

        return getattr(_group, name)

    if name == "Config":
        from perch.config import Config

        return Config

    if name in ("Context", "get_context"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name == "Cookie":
        from perch.http.cookies import Cookie

        return Cookie

    if name in ("Middleware", "MiddlewareChain"):
        from perch import middleware as _mw

        return getattr(_mw, name)

    if name in ("FileServer", "gzip_files", "serve_file", "strip_prefix"):
        from perch import static as _static

        return getattr(_static, name)

    if name in (
        "ConfigurationError",
        "ContextValueTypeError",
        "HTTPError",
        "NotFound",
        "PerchError",
        "SessionNotFound",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
