"""Rotation of proxy addresses between requests."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit


class EmptyProxyURLError(ValueError):
    """Raised when no proxy URL is given."""

    def __init__(self) -> None:
        super().__init__("Proxy URL list is empty")


def _parse_proxy_url(url: str) -> str:
    parts = urlsplit(url)
    # Accessing the port validates it.
    parts.port
    return parts.geturl()


class RoundRobinProxySwitcher:
    """Hands out the given proxy URLs in turn, one per request.

    The proxy type follows the URL scheme: "http", "https" and "socks5";
    an empty scheme means "http".
    """

    def __init__(self, *proxy_urls: str) -> None:
        if not proxy_urls:
            raise EmptyProxyURLError()
        self.proxy_urls = [_parse_proxy_url(url) for url in proxy_urls]
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def get_proxy(self, request: Any = None) -> str:
        """Return the next proxy URL and record it on the request."""
        with self._lock:
            index = next(self._counter)
        url = self.proxy_urls[index % len(self.proxy_urls)]
        if request is not None and hasattr(request, "proxy_url"):
            request.proxy_url = url
        return url


def round_robin_proxy_switcher(*args: str) -> Callable[[Any], str]:
    """Create a proxy function that rotates the given URLs on every request."""
    return RoundRobinProxySwitcher(*args).get_proxy