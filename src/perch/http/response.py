"""HTTP response with a chainable ``.with_*()`` transformation API.

Raw handlers (the file server, the gzip decorator, the not-found
fallback) build these directly; context-aware handlers write through a
``ResponseWriter`` that is turned into a ``Response`` once the handler
returns. Each transformation returns a new ``Response``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from perch.http.cookies import Cookie

TEXT_PLAIN = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = b""
    status: int = 200
    content_type: str | None = TEXT_PLAIN
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[Cookie, ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_body(self, body: str | bytes) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=body)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def without_header(self, name: str) -> Response:
        """Return a new Response with every *name* header removed."""
        lowered = name.lower()
        return replace(self, headers=tuple(h for h in self.headers if h[0].lower() != lowered))

    def with_cookie(self, cookie: Cookie) -> Response:
        """Return a new Response with an additional Set-Cookie."""
        return replace(self, cookies=(*self.cookies, cookie))

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header *name*, case-insensitively."""
        lowered = name.lower()
        if lowered == "content-type":
            return self.content_type or default
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


def not_found(detail: str = "404 page not found") -> Response:
    """The plain-text 404 every unmatched or method-gated request receives."""
    return Response(body=detail + "\n", status=404).with_header(
        "X-Content-Type-Options", "nosniff"
    )


def redirect(url: str, status: int = 302) -> Response:
    """A redirect with an empty body."""
    return Response(body=b"", status=status, content_type=None).with_header("Location", url)
