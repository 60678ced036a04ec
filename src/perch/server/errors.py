"""Error mapping for perch requests.

Turns ``HTTPError`` exceptions and unexpected failures into plain-text
``Response`` objects.
"""

import logging
import traceback

from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError to a plain-text response.

    Not-found and friends are part of normal traffic, so they are only
    logged at DEBUG.
    """
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    detail = exc.detail or f"Error {exc.status}"
    response = Response(body=detail + "\n", status=exc.status).with_header(
        "X-Content-Type-Options", "nosniff"
    )
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(
    exc: Exception,
    request: Request,
    *,
    debug: bool,
    log: logging.Logger | None = None,
) -> Response:
    """Handle an unexpected exception as a 500, logging the traceback."""
    (log or logger).exception("500 %s %s", request.method, request.path)

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500)
    return Response(body="500 internal server error\n", status=500)
