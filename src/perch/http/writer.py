"""Mutable response writer owned by one ``Context``.

Context-aware handlers and middleware never return a response; they
write through this object. Once the chain and the handler are done the
adapter calls ``to_response()`` and hands the result to the sender.
"""

from perch.http.cookies import Cookie
from perch.http.response import TEXT_PLAIN, Response


class ResponseWriter:
    """Accumulates status, headers, cookies and body for one request.

    Writes append, so several ``write`` calls concatenate. Headers keep
    insertion order; ``set_header`` replaces, ``add_header`` appends.
    """

    __slots__ = ("_body", "_cookies", "_headers", "content_type", "status")

    def __init__(self) -> None:
        self.status = 200
        self.content_type: str | None = TEXT_PLAIN
        self._headers: list[tuple[str, str]] = []
        self._cookies: list[Cookie] = []
        self._body = bytearray()

    def write(self, data: bytes) -> int:
        self._body += data
        return len(data)

    def set_header(self, name: str, value: str) -> None:
        if name.lower() == "content-type":
            self.content_type = value
            return
        self.del_header(name)
        self._headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        self._headers.append((name, value))

    def del_header(self, name: str) -> None:
        lowered = name.lower()
        self._headers = [h for h in self._headers if h[0].lower() != lowered]

    def get_header(self, name: str) -> str | None:
        lowered = name.lower()
        if lowered == "content-type":
            return self.content_type
        for key, value in self._headers:
            if key.lower() == lowered:
                return value
        return None

    def set_cookie(self, cookie: Cookie) -> None:
        self._cookies.append(cookie)

    @property
    def cookies(self) -> tuple[Cookie, ...]:
        return tuple(self._cookies)

    @property
    def written(self) -> bytes:
        return bytes(self._body)

    def to_response(self) -> Response:
        """Freeze the accumulated state into a ``Response``."""
        return Response(
            body=bytes(self._body),
            status=self.status,
            content_type=self.content_type,
            headers=tuple(self._headers),
            cookies=tuple(self._cookies),
        )

    def merge(self, response: Response) -> None:
        """Write *response* through this writer.

        Status and content type come from *response*, its headers replace
        same-named ones already set, its body is appended.
        """
        self.status = response.status
        self.content_type = response.content_type
        for name, value in response.headers:
            self.set_header(name, value)
        self._cookies.extend(response.cookies)
        self._body += response.body_bytes
