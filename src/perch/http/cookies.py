"""Cookie parsing and Set-Cookie serialization.

The read side (``parse_cookies``, used by ``Request``) and the write side
(``Cookie.to_header_value``, used by the sender) live together, along
with ``parse_set_cookie`` for the test client's cookie jar.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class Cookie:
    """An HTTP cookie.

    Used both for cookies read from a request (only ``name`` and ``value``
    are meaningful there) and for ``Set-Cookie`` directives written to a
    response.

    ``max_age`` follows net/http conventions: ``None`` omits the
    attribute, a positive value is sent as-is, and any negative value
    means "delete now" and is sent as ``Max-Age=0``.
    """

    name: str
    value: str
    expires: datetime | None = None
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @property
    def is_expired(self) -> bool:
        """True if the cookie instructs the client to drop it."""
        if self.max_age is not None and self.max_age <= 0:
            return True
        return self.expires is not None and self.expires <= datetime.now(UTC)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.expires is not None:
            parts.append(f"Expires={format_datetime(self.expires.astimezone(UTC), usegmt=True)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={max(self.max_age, 0)}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite}")
        return "; ".join(parts)


def parse_set_cookie(header: str) -> Cookie | None:
    """Parse a ``Set-Cookie`` header value back into a ``Cookie``.

    Unknown attributes are ignored. Returns ``None`` when the header has
    no ``name=value`` pair.
    """
    first, *attrs = (part.strip() for part in header.split(";"))
    if "=" not in first:
        return None
    name, _, value = first.partition("=")

    expires: datetime | None = None
    max_age: int | None = None
    path = "/"
    domain: str | None = None
    secure = httponly = False
    samesite = ""
    for attr in attrs:
        key, _, val = attr.partition("=")
        match key.strip().lower():
            case "expires":
                try:
                    expires = parsedate_to_datetime(val.strip())
                except (TypeError, ValueError):
                    expires = None
            case "max-age":
                try:
                    max_age = int(val.strip())
                except ValueError:
                    max_age = None
            case "path":
                path = val.strip()
            case "domain":
                domain = val.strip() or None
            case "secure":
                secure = True
            case "httponly":
                httponly = True
            case "samesite":
                samesite = val.strip()

    return Cookie(
        name=name.strip(),
        value=value.strip(),
        expires=expires,
        max_age=max_age,
        path=path,
        domain=domain,
        secure=secure,
        httponly=httponly,
        samesite=samesite,
    )
