"""Per-request context.

Provides:
- ``Context``: the object every handler and middleware receives. It
  wraps the ``Request`` and a fresh ``ResponseWriter``, carries
  request-scoped values, and exposes the cookie session helpers.
- ``context_var`` / ``get_context()``: the current ``Context`` for this
  task, set by the handler adapter and reset after each request.

Thread safety:
    A ``Context`` is owned by the task serving its request and is never
    shared. ``ContextVar`` is task-local under asyncio and thread-local
    under free-threading. No locks needed.
"""

from __future__ import annotations

import json as json_module
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from perch.config import Config
from perch.errors import ContextValueTypeError, SessionNotFound
from perch.http.cookies import EPOCH, Cookie
from perch.http.writer import ResponseWriter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from perch.http.headers import Headers
    from perch.http.query import QueryParams
    from perch.http.request import Request

T = TypeVar("T")

context_var: ContextVar[Context] = ContextVar("perch_context")
"""The context of the request being served. Set by the handler adapter."""


def get_context() -> Context:
    """Return the current request's context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()


def new_token() -> str:
    """A fresh session token: a random (version 4) UUID string."""
    return str(uuid.uuid4())


class Context:
    """Request, response writer and request-scoped values for one request.

    Usage::

        def auth(ctx: Context) -> None:
            ctx.set_value("user", lookup(ctx.get_session("sid").value))

        def profile(ctx: Context) -> None:
            ctx.write_json({"user": ctx.get_value("user")})

    Values stored with ``set_value`` live exactly as long as the request.
    """

    __slots__ = ("_config", "_logger", "_values", "request", "writer")

    def __init__(
        self,
        request: Request,
        *,
        config: Config | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.request = request
        self.writer = ResponseWriter()
        self._values: dict[Any, Any] = {}
        self._config = config or Config()
        self._logger = logger or logging.getLogger("perch")

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path}>"

    # -- Request access --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def headers(self) -> Headers:
        return self.request.headers

    @property
    def query(self) -> QueryParams:
        return self.request.query

    @property
    def cookies(self) -> Mapping[str, str]:
        return self.request.cookies

    # -- Response writing --

    def set_status(self, status: int) -> None:
        self.writer.status = status

    def set_header(self, name: str, value: str) -> None:
        self.writer.set_header(name, value)

    def write(self, text: str) -> None:
        """Write *text* to the response body as UTF-8."""
        self.writer.write(text.encode("utf-8"))

    def write_json(self, value: Any) -> None:
        """Write *value* as compact JSON with ``Content-Type: application/json``.

        If *value* cannot be serialized (NaN and infinities included) the
        error is logged and the response becomes an empty JSON-typed 500.
        """
        self.writer.set_header("Content-Type", "application/json")
        try:
            payload = json_module.dumps(
                value, separators=(",", ":"), ensure_ascii=False, allow_nan=False
            )
        except (TypeError, ValueError):
            self._logger.exception("JSON encoding failed for %s %s", self.method, self.path)
            self.writer.status = 500
            return
        self.writer.write(payload.encode("utf-8"))

    def redirect(self, url: str, status: int = 302) -> None:
        self.writer.status = status
        self.writer.set_header("Location", url)

    async def serve_file(self, path: str | Path) -> None:
        """Write the file at *path* to the response (404 if it is missing)."""
        from perch.static import serve_file

        response = await serve_file(
            self.request, path, index=self._config.static_index
        )
        self.writer.merge(response)

    # -- Request-scoped values --

    def set_value(self, key: Any, value: Any) -> None:
        """Store *value* under *key* for the rest of this request."""
        self._values[key] = value

    def get_value(self, key: Any, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default*. Never raises."""
        return self._values.get(key, default)

    def get_value_as(self, key: Any, kind: type[T]) -> T | None:
        """Return the value under *key* checked against *kind*.

        Returns ``None`` when nothing is stored. Raises
        ``ContextValueTypeError`` when the stored value is not a *kind*.
        """
        if key not in self._values:
            return None
        value = self._values[key]
        if not isinstance(value, kind):
            raise ContextValueTypeError(str(key), kind, value)
        return value

    def has_value(self, key: Any) -> bool:
        return key in self._values

    # -- Sessions --

    def new_session(self, name: str) -> Cookie:
        """Start a session: set cookie *name* to a fresh random token.

        The cookie expires ``Config.session_lifetime`` seconds from now
        and is scoped to ``/``. Returns the cookie that was set.
        """
        cookie = Cookie(
            name=name,
            value=new_token(),
            expires=datetime.now(UTC) + timedelta(seconds=self._config.session_lifetime),
            path="/",
            httponly=self._config.session_httponly,
            samesite=self._config.session_samesite,
        )
        self.writer.set_cookie(cookie)
        return cookie

    def get_session(self, name: str) -> Cookie:
        """Return the session cookie *name* sent with the request.

        Raises ``SessionNotFound`` if the request does not carry it.
        """
        try:
            value = self.request.cookies[name]
        except KeyError:
            raise SessionNotFound(name) from None
        return Cookie(name=name, value=value)

    def delete_session(self, name: str) -> None:
        """Tell the client to drop session cookie *name*."""
        self.writer.set_cookie(
            Cookie(
                name=name,
                value="deleted",
                expires=EPOCH,
                max_age=-1,
                path="/",
                httponly=self._config.session_httponly,
                samesite=self._config.session_samesite,
            )
        )
