"""static scheme to transport table used by the metadata fetcher."""
from typing import Callable, Dict, Mapping
from urllib.parse import urlsplit

import httpx

TransportFactory = Callable[[], httpx.AsyncBaseTransport]


def _http_transport() -> httpx.AsyncBaseTransport:
    return httpx.AsyncHTTPTransport()


# one transport serves both schemes: httpx negotiates TLS from the request URL
TRANSPORTS: Mapping[str, TransportFactory] = {
    "http": _http_transport,
    "https": _http_transport,
}


def default_transports() -> Dict[str, TransportFactory]:
    return dict(TRANSPORTS)


def is_supported_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in TRANSPORTS and bool(parts.netloc)
