"""ht url - normalize user-typed URLs."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from ht.errors import UrlError

DEFAULT_SCHEME = "http"


@dataclass(frozen=True)
class Url:
    url: str
    host: str

    @classmethod
    def parse(cls, raw: str, default_scheme: str = DEFAULT_SCHEME) -> Url:
        """Resolve raw into an absolute URL.

        - "https://example.com" is used as is
        - "example.com/x" gets the default scheme: "http://example.com/x"
        - ":3000/x" is shorthand for "http://localhost:3000/x"

        Raises UrlError when the result has no scheme or host, or a bad port.
        """
        url = raw.strip()
        if "://" not in url:
            if url.startswith(":"):
                url = "localhost" + url
                if url.startswith("localhost:/"):
                    url = "localhost" + url[len("localhost:") :]
            url = f"{default_scheme}://{url}"

        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            raise UrlError(f"Invalid URL '{raw}': {e}") from e

        if not parts.scheme:
            raise UrlError(f"Invalid URL '{raw}': no scheme")
        hostname = parts.hostname
        if not hostname:
            raise UrlError(f"Invalid URL '{raw}': no host")

        if ":" in hostname:
            hostname = f"[{hostname}]"
        host = f"{hostname}:{port}" if port is not None else hostname
        return cls(url=url, host=host)
