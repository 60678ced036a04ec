"""Router configuration.

Config is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Config:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = Config(port=3000, session_lifetime=15 * 60)
    """

    # Server (used by listen() when no address is given)
    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 1
    debug: bool = False

    # Sessions
    session_lifetime: int = 30 * 60  # seconds
    session_httponly: bool = True
    session_samesite: str = "lax"

    # Static files
    static_cache_control: str = "max-age=86400"  # one day
    static_index: str = "index.html"
    gzip_level: int = 6

    # Logging
    log_level: str = "info"
