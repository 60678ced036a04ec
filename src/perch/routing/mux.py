"""Path-pattern multiplexer.

Matching rules:

- Patterns start with ``/``.
- A pattern ending in ``/`` names a rooted subtree and matches every
  path below it (``/static/`` matches ``/static/css/site.css``).
- Any other pattern matches only the identical path.
- The longest matching pattern wins.

Request paths are cleaned first; an unclean path (``//``, ``.``, ``..``)
is answered with a permanent redirect to its clean form. A request for
``/tree`` when only ``/tree/`` is registered is redirected to ``/tree/``.
"""

import posixpath

from perch.errors import ConfigurationError, NotFound
from perch.http.request import Request
from perch.http.response import Response, redirect
from perch.routing.route import Route, RouteMatch


def clean_path(path: str) -> str:
    """Return the canonical form of *path*.

    Collapses duplicate slashes, resolves ``.`` and ``..`` and keeps a
    trailing slash if the original had one::

        clean_path("/a//b/../c/")  -> "/a/c/"
        clean_path("")             -> "/"
    """
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    cleaned = posixpath.normpath(path)
    # POSIX keeps a leading "//"; URLs do not.
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    if path.endswith("/") and cleaned != "/":
        cleaned += "/"
    return cleaned


class ServeMux:
    """Route table shared by every group of one router.

    Usage::

        mux = ServeMux()
        mux.add(Route.single("/users", list_users, "GET"))
        mux.add(Route.single("/static/", files))
        mux.compile()
        match = mux.match("/static/app.js")

    Mutated only during setup. After ``compile()`` it is read-only and
    safe to share between concurrently running requests.
    """

    __slots__ = ("_compiled", "_routes", "_subtrees")

    def __init__(self) -> None:
        self._routes: dict[str, Route] = {}
        # Subtree routes, longest pattern first
        self._subtrees: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Register *route*. Must be called before ``compile()``."""
        if self._compiled:
            msg = "Cannot add routes after the router has started serving."
            raise RuntimeError(msg)
        if not route.pattern.startswith("/"):
            msg = f"route pattern must start with '/': {route.pattern!r}"
            raise ConfigurationError(msg)

        existing = self._routes.get(route.pattern)
        if existing is not None:
            route = existing.merged(route)
        self._routes[route.pattern] = route

        if route.is_subtree:
            self._subtrees = sorted(
                (r for r in self._routes.values() if r.is_subtree),
                key=lambda r: len(r.pattern),
                reverse=True,
            )

    def compile(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes.values())

    def match(self, path: str) -> RouteMatch:
        """Find the route for *path*.

        Returns a ``RouteMatch`` carrying either the route or a redirect
        target. Raises ``NotFound`` if nothing matches.
        """
        cleaned = clean_path(path)
        if cleaned != path:
            return RouteMatch(redirect=cleaned)

        if path not in self._routes and (path + "/") in self._routes:
            return RouteMatch(redirect=path + "/")

        route = self._routes.get(path)
        if route is not None:
            return RouteMatch(route=route)

        for route in self._subtrees:
            if path.startswith(route.pattern):
                return RouteMatch(route=route)

        raise NotFound()

    async def dispatch(self, request: Request) -> Response:
        """Serve *request* with the matching route's raw handler."""
        match = self.match(request.path)
        if match.redirect is not None:
            target = match.redirect
            if request.query.raw:
                target += "?" + request.query.raw.decode("latin-1")
            return redirect(target, status=301)

        assert match.route is not None
        handler = match.route.handler_for(request.method)
        return await handler(request)
