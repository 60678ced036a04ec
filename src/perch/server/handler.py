"""ASGI handler: translates ASGI scope/messages to perch types.

The only component that touches raw ASGI on the request side. Builds
the ``Request``, dispatches it through the shared multiplexer, maps
errors and sends the ``Response`` back through ASGI ``send()``.
"""

import logging

from perch._internal.asgi import Receive, Scope, Send
from perch.errors import HTTPError
from perch.http.request import Request
from perch.routing.mux import ServeMux
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    mux: ServeMux,
    debug: bool = False,
    logger: logging.Logger | None = None,
) -> None:
    """Process a single HTTP request through the multiplexer."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        response = await mux.dispatch(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=debug, log=logger)

    await send_response(response, send, head=request.method == "HEAD")
