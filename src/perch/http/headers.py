"""Immutable, case-insensitive request headers.

Stores the raw byte pairs from the ASGI scope and decodes on access.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns every value sent under a name.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build from a plain ``{name: value}`` mapping (tests, tools)."""
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            )
        )

    def __getitem__(self, key: str) -> str:
        wanted = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == wanted:
                return value.decode("latin-1")
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower().encode("latin-1")
        return any(name.lower() == wanted for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        wanted = key.lower().encode("latin-1")
        return [value.decode("latin-1") for name, value in self._raw if name.lower() == wanted]

    def accepts_encoding(self, coding: str) -> bool:
        """True if ``Accept-Encoding`` advertises *coding*.

        A coding listed with ``q=0`` (or an unreadable q-value) is refused.
        An explicit entry for *coding* overrides ``*``, so
        ``gzip;q=0, *`` refuses gzip.
        """
        qualities: dict[str, float] = {}
        for value in self.get_list("accept-encoding"):
            for item in value.split(","):
                token, *params = (part.strip() for part in item.split(";"))
                token = token.lower()
                if not token:
                    continue
                q = 1.0
                for param in params:
                    name, _, raw_q = param.partition("=")
                    if name.strip().lower() == "q":
                        try:
                            q = float(raw_q)
                        except ValueError:
                            q = 0.0
                qualities[token] = max(q, qualities.get(token, 0.0))

        wanted = coding.lower()
        if wanted in qualities:
            return qualities[wanted] > 0
        return qualities.get("*", 0.0) > 0

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Raw header byte pairs, as received from ASGI."""
        return self._raw
