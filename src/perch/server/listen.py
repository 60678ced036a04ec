"""Serving a router over the network.

Starts a pounce ASGI server with the live router object. Pounce is an
optional dependency (``pip install perch[server]``); everything else in
perch works without it, including the test client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from perch.errors import ConfigurationError

if TYPE_CHECKING:
    from perch.config import Config
    from perch.group import Group


def parse_address(address: str, *, default_host: str = "0.0.0.0") -> tuple[str, int]:
    """Split ``"host:port"`` (or ``":port"``) into its parts.

    An empty host means every interface. IPv6 hosts go in brackets::

        parse_address(":8080")          -> ("0.0.0.0", 8080)
        parse_address("[::1]:8080")     -> ("::1", 8080)
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        msg = f"address must be 'host:port' or ':port', got {address!r}"
        raise ConfigurationError(msg)
    try:
        port_number = int(port)
    except ValueError:
        msg = f"invalid port in address {address!r}"
        raise ConfigurationError(msg) from None
    if not 0 <= port_number <= 65535:
        msg = f"port out of range in address {address!r}"
        raise ConfigurationError(msg)
    host = host.strip("[]") or default_host
    return host, port_number


def run_server(
    app: Group,
    host: str,
    port: int,
    *,
    config: Config,
    logger: logging.Logger,
) -> None:
    """Run a pounce server for *app* until it stops.

    Blocks. Errors raised while binding or serving (``OSError`` for an
    address in use, for example) propagate to the caller.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError:
        msg = (
            "listen() requires the 'bengal-pounce' ASGI server. "
            "Install it with: pip install 'perch[server]'"
        )
        raise ConfigurationError(msg) from None

    server_config = ServerConfig(
        host=host,
        port=port,
        workers=config.workers,
        log_level=config.log_level,
    )
    logger.info("listening @%s:%d", host, port)
    Server(server_config, app).run()
