"""Static file serving.

Three raw-handler building blocks, composed by ``Group.serve_files``::

    gzip_files(strip_prefix("/static", FileServer("./public")))

- ``FileServer`` serves files below a directory.
- ``strip_prefix`` removes a URL prefix before delegating.
- ``gzip_files`` adds a cache header and compresses for clients that
  accept gzip.

``serve_file`` answers a request with one fixed file (used for favicons
and ``Context.serve_file``).

File system reads and compression run in a worker thread so a large
asset never blocks the event loop.
"""

import functools
import gzip
import html
import mimetypes
from datetime import UTC, datetime
from email.utils import format_datetime
from pathlib import Path
from urllib.parse import quote

import anyio.to_thread

from perch._internal.types import RawHandler
from perch.http.request import Request
from perch.http.response import Response, not_found


def _load_file(file_path: Path) -> Response:
    body = file_path.read_bytes()
    content_type, _ = mimetypes.guess_type(file_path.name)
    if content_type is None:
        content_type = "application/octet-stream"
    elif content_type.startswith("text/") and "charset" not in content_type:
        content_type += "; charset=utf-8"
    modified = datetime.fromtimestamp(file_path.stat().st_mtime, tz=UTC)
    return Response(body=body, content_type=content_type).with_header(
        "Last-Modified", format_datetime(modified, usegmt=True)
    )


def _listing_response(directory: Path) -> Response:
    """A bare HTML index of *directory*, sorted by name."""
    lines = ['<!doctype html>\n<meta name="viewport" content="width=device-width">\n<pre>\n']
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        name = entry.name + ("/" if entry.is_dir() else "")
        lines.append(f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>\n')
    lines.append("</pre>\n")
    return Response(body="".join(lines), content_type="text/html; charset=utf-8")


async def _read(file_path: Path) -> Response:
    return await anyio.to_thread.run_sync(_load_file, file_path)


class FileServer:
    """Raw handler serving files below ``directory``.

    - The request path, relative to the directory, names the file.
    - Paths escaping the directory (``..``, symlinks) get a 403.
    - A directory is redirected to its trailing-slash form, then served
      through its index file, or as a listing when it has none.
    - Anything missing gets the plain 404.

    Usage::

        files = FileServer("./public")
        mux.add(Route.single("/", files))
    """

    __slots__ = ("_directory", "_index", "_listing")

    def __init__(
        self,
        directory: str | Path,
        *,
        index: str = "index.html",
        listing: bool = True,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._listing = listing

    @property
    def directory(self) -> Path:
        return self._directory

    async def __call__(self, request: Request) -> Response:
        if request.method not in ("GET", "HEAD"):
            return Response(body="405 method not allowed\n", status=405).with_header(
                "Allow", "GET, HEAD"
            )

        path = request.path or "/"
        relative = path.lstrip("/")
        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return Response(body="403 forbidden\n", status=403)

        if file_path.is_dir():
            if not path.endswith("/"):
                # Relative, so it stays correct behind strip_prefix
                location = path.rsplit("/", 1)[-1] + "/"
                return Response(body=b"", status=301, content_type=None).with_header(
                    "Location", location
                )
            index_path = file_path / self._index
            if index_path.is_file():
                return await _read(index_path)
            if self._listing:
                return await anyio.to_thread.run_sync(_listing_response, file_path)
            return not_found()

        if not file_path.is_file():
            return not_found()

        return await _read(file_path)


async def serve_file(request: Request, path: str | Path, *, index: str = "index.html") -> Response:
    """Answer *request* with the file at *path*.

    Directories are served through their index file. Requests whose
    path contains a ``..`` segment are refused with a 400.
    """
    if ".." in request.path.split("/"):
        return Response(body="invalid URL path\n", status=400)

    file_path = Path(path)
    if file_path.is_dir():
        file_path = file_path / index
    if not file_path.is_file():
        return not_found()
    return await _read(file_path)


def strip_prefix(prefix: str, handler: RawHandler) -> RawHandler:
    """Wrap *handler* so it sees request paths with *prefix* removed.

    Requests whose path does not start with *prefix* get a 404.
    """

    async def stripped(request: Request) -> Response:
        if not prefix:
            return await handler(request)
        if not request.path.startswith(prefix):
            return not_found()
        return await handler(request.with_path(request.path[len(prefix) :]))

    return stripped


def gzip_files(
    handler: RawHandler,
    *,
    cache_control: str = "max-age=86400",
    level: int = 6,
) -> RawHandler:
    """Wrap a file-serving *handler* with caching and gzip compression.

    ``Cache-Control`` is always set. Clients that do not advertise gzip
    in ``Accept-Encoding`` get the wrapped response untouched. Everyone
    else gets the body compressed once, with ``Content-Encoding: gzip``
    and ``Vary: Accept-Encoding``.
    """

    async def gzipped(request: Request) -> Response:
        response = await handler(request)
        response = response.without_header("Cache-Control").with_header(
            "Cache-Control", cache_control
        )

        if not request.headers.accepts_encoding("gzip"):
            return response
        if response.header("Content-Encoding") is not None:
            return response

        compress = functools.partial(gzip.compress, compresslevel=level)
        body = await anyio.to_thread.run_sync(compress, response.body_bytes)
        return (
            response.with_body(body)
            .without_header("Content-Length")
            .with_header("Content-Encoding", "gzip")
            .with_header("Vary", "Accept-Encoding")
        )

    return gzipped
