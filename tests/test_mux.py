"""Tests for perch.routing.mux: path cleaning, matching and dispatch."""

import pytest

from perch.errors import ConfigurationError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.mux import ServeMux, clean_path
from perch.routing.route import Route


async def _ok(request: Request) -> Response:
    return Response(f"ok {request.path}")


async def _files(request: Request) -> Response:
    return Response(f"files {request.path}")


async def _css(request: Request) -> Response:
    return Response(f"css {request.path}")


def _request(method: str, path: str, query: bytes = b"") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "query_string": query,
        "http_version": "1.1",
    }

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request.from_asgi(scope, receive)


def _mux(*routes: Route) -> ServeMux:
    mux = ServeMux()
    for route in routes:
        mux.add(route)
    mux.compile()
    return mux


class TestCleanPath:
    def test_already_clean(self) -> None:
        assert clean_path("/users") == "/users"

    def test_root(self) -> None:
        assert clean_path("/") == "/"

    def test_empty(self) -> None:
        assert clean_path("") == "/"

    def test_missing_leading_slash(self) -> None:
        assert clean_path("users") == "/users"

    def test_duplicate_slashes(self) -> None:
        assert clean_path("/a//b") == "/a/b"

    def test_leading_double_slash(self) -> None:
        assert clean_path("//a") == "/a"

    def test_dot_segments(self) -> None:
        assert clean_path("/a/./b/../c") == "/a/c"

    def test_keeps_trailing_slash(self) -> None:
        assert clean_path("/a//b/../c/") == "/a/c/"

    def test_dotdot_above_root(self) -> None:
        assert clean_path("/../x") == "/x"


class TestServeMuxRegistration:
    def test_pattern_must_start_with_slash(self) -> None:
        mux = ServeMux()
        with pytest.raises(ConfigurationError, match="must start with '/'"):
            mux.add(Route.single("users", _ok, "GET"))

    def test_duplicate_method_and_pattern_raises(self) -> None:
        mux = ServeMux()
        mux.add(Route.single("/users", _ok, "GET"))
        with pytest.raises(ConfigurationError, match="multiple registrations"):
            mux.add(Route.single("/users", _ok, "GET"))

    def test_different_methods_merge(self) -> None:
        mux = ServeMux()
        mux.add(Route.single("/users", _ok, "GET"))
        mux.add(Route.single("/users", _ok, "POST"))
        assert len(mux.routes) == 1
        assert mux.routes[0].methods == frozenset({"GET", "POST"})

    def test_method_agnostic_conflicts_with_anything(self) -> None:
        mux = ServeMux()
        mux.add(Route.single("/static/", _files))
        with pytest.raises(ConfigurationError):
            mux.add(Route.single("/static/", _ok, "GET"))

    def test_add_after_compile_raises(self) -> None:
        mux = ServeMux()
        assert not mux.compiled
        mux.compile()
        assert mux.compiled
        with pytest.raises(RuntimeError, match="Cannot add routes"):
            mux.add(Route.single("/late", _ok, "GET"))

    def test_routes_in_registration_order(self) -> None:
        mux = ServeMux()
        mux.add(Route.single("/b", _ok, "GET"))
        mux.add(Route.single("/a", _ok, "GET"))
        assert [r.pattern for r in mux.routes] == ["/b", "/a"]


class TestServeMuxMatch:
    def test_exact(self) -> None:
        mux = _mux(Route.single("/users", _ok, "GET"))
        match = mux.match("/users")
        assert match.route is not None
        assert match.route.pattern == "/users"
        assert match.redirect is None

    def test_exact_pattern_does_not_match_descendants(self) -> None:
        mux = _mux(Route.single("/users", _ok, "GET"))
        with pytest.raises(NotFound):
            mux.match("/users/42")

    def test_subtree_matches_descendants(self) -> None:
        mux = _mux(Route.single("/static/", _files))
        match = mux.match("/static/js/app.js")
        assert match.route is not None
        assert match.route.pattern == "/static/"

    def test_longest_pattern_wins(self) -> None:
        mux = _mux(
            Route.single("/static/", _files),
            Route.single("/static/css/", _css),
        )
        assert mux.match("/static/css/site.css").route.pattern == "/static/css/"
        assert mux.match("/static/js/app.js").route.pattern == "/static/"

    def test_exact_beats_subtree(self) -> None:
        mux = _mux(
            Route.single("/", _files),
            Route.single("/about", _ok, "GET"),
        )
        assert mux.match("/about").route.pattern == "/about"
        assert mux.match("/contact").route.pattern == "/"

    def test_root_subtree_catches_everything(self) -> None:
        mux = _mux(Route.single("/", _files))
        assert mux.match("/any/thing").route.pattern == "/"

    def test_unclean_path_redirects(self) -> None:
        mux = _mux(Route.single("/a/b", _ok, "GET"))
        assert mux.match("/a//b").redirect == "/a/b"
        assert mux.match("/a/x/../b").redirect == "/a/b"

    def test_subtree_without_slash_redirects(self) -> None:
        mux = _mux(Route.single("/tree/", _files))
        match = mux.match("/tree")
        assert match.route is None
        assert match.redirect == "/tree/"

    def test_exact_registration_suppresses_slash_redirect(self) -> None:
        mux = _mux(
            Route.single("/tree/", _files),
            Route.single("/tree", _ok, "GET"),
        )
        assert mux.match("/tree").route.pattern == "/tree"

    def test_no_match_raises_not_found(self) -> None:
        mux = _mux(Route.single("/users", _ok, "GET"))
        with pytest.raises(NotFound) as exc_info:
            mux.match("/nope")
        assert exc_info.value.status == 404
        assert exc_info.value.detail == "404 page not found"


class TestServeMuxDispatch:
    async def test_calls_route_handler(self) -> None:
        mux = _mux(Route.single("/users", _ok, "GET"))
        response = await mux.dispatch(_request("GET", "/users"))
        assert response.status == 200
        assert response.text == "ok /users"

    async def test_redirect_is_permanent(self) -> None:
        mux = _mux(Route.single("/a/b", _ok, "GET"))
        response = await mux.dispatch(_request("GET", "/a//b"))
        assert response.status == 301
        assert response.header("Location") == "/a/b"
        assert response.body_bytes == b""

    async def test_redirect_preserves_query(self) -> None:
        mux = _mux(Route.single("/tree/", _files))
        response = await mux.dispatch(_request("GET", "/tree", b"page=2"))
        assert response.status == 301
        assert response.header("Location") == "/tree/?page=2"

    async def test_picks_handler_by_method(self) -> None:
        async def create(request: Request) -> Response:
            return Response("created", status=201)

        mux = _mux(
            Route.single("/users", _ok, "GET"),
            Route.single("/users", create, "POST"),
        )
        assert (await mux.dispatch(_request("GET", "/users"))).status == 200
        assert (await mux.dispatch(_request("POST", "/users"))).status == 201

    async def test_not_found_propagates(self) -> None:
        mux = _mux(Route.single("/users", _ok, "GET"))
        with pytest.raises(NotFound):
            await mux.dispatch(_request("GET", "/missing"))
