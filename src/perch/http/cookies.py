"""Cookie parsing and Set-Cookie serialization.

Keeps the read side (``parse_cookies``, used when building a request
context) and the write side (``SetCookie``, used by ``ResponseBuilder``)
in one module.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Pairs without ``=`` or with an empty name are dropped. Returns an
    empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" not in pair:
            continue
        key, _, value = pair.partition("=")
        key = key.strip()
        if not key:
            continue
        cookies[key] = value.strip()
    return cookies


def http_date(moment: datetime) -> str:
    """Format *moment* as an HTTP-date (``Wed, 21 Oct 2015 07:28:00 GMT``).

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A single ``Set-Cookie`` directive.

    Attributes left at ``None``/``False`` are omitted from the header.
    """

    name: str
    value: str
    path: str | None = "/"
    max_age: int | None = None
    expires: datetime | str | None = None
    domain: str | None = None
    secure: bool = False
    httponly: bool = False
    samesite: str | None = None

    @classmethod
    def deletion(cls, name: str, *, path: str | None = "/", domain: str | None = None) -> "SetCookie":
        """A directive that tells the browser to drop *name* immediately."""
        return cls(name=name, value="", path=path, max_age=0, domain=domain)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.expires is not None:
            expires = self.expires if isinstance(self.expires, str) else http_date(self.expires)
            parts.append(f"Expires={expires}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)
