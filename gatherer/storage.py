"""Storage of visited request identifiers and cookies."""

from __future__ import annotations

import email.message
import threading
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Iterable
from http.cookiejar import CookieJar
from http.cookies import CookieError, Morsel, SimpleCookie


class Storage(ABC):
    """Keeps a collector's internal data: visited requests and cookies."""

    @abstractmethod
    def init(self) -> None:
        """Prepare the storage for use."""

    @abstractmethod
    def visited(self, request_id: int) -> None:
        """Record a request identifier as visited."""

    @abstractmethod
    def is_visited(self, request_id: int) -> bool:
        """Tell whether a request identifier was visited before."""

    @abstractmethod
    def cookies(self, url: str) -> str:
        """Return the stored cookies for a URL."""

    @abstractmethod
    def set_cookies(self, url: str, cookies: str) -> None:
        """Store cookies, one Set-Cookie value per line, for a URL."""


class _SetCookieResponse:
    """Minimal response object carrying Set-Cookie headers for a cookie jar."""

    def __init__(self, lines: Iterable[str]):
        self._headers = email.message.Message()
        for line in lines:
            self._headers["Set-Cookie"] = line

    def info(self) -> email.message.Message:
        return self._headers


class InMemoryStorage(Storage):
    """Keeps cookies and visited requests in memory only."""

    def __init__(self) -> None:
        self._visited: set[int] | None = None
        self._lock: threading.Lock | None = None
        self._jar: CookieJar | None = None
        self.init()

    def init(self) -> None:
        if self._visited is None:
            self._visited = set()
        if self._lock is None:
            self._lock = threading.Lock()
        if self._jar is None:
            self._jar = CookieJar()

    def visited(self, request_id: int) -> None:
        with self._lock:
            self._visited.add(request_id)

    def is_visited(self, request_id: int) -> bool:
        with self._lock:
            return request_id in self._visited

    def cookies(self, url: str) -> str:
        request = urllib.request.Request(url)
        self._jar.add_cookie_header(request)
        header = request.get_header("Cookie")
        if not header:
            return ""
        return "\n".join(part for part in header.split("; ") if part)

    def set_cookies(self, url: str, cookies: str) -> None:
        lines = [line for line in cookies.split("\n") if line.strip()]
        if not lines:
            return
        self._jar.extract_cookies(_SetCookieResponse(lines), urllib.request.Request(url))

    def close(self) -> None:
        """Release the in-memory data: visited requests and cookies."""
        with self._lock:
            self._visited.clear()
            self._jar.clear()


def stringify_cookies(cookies: Iterable[Morsel]) -> str:
    """Serialise cookies into Set-Cookie values, one per line."""
    return "\n".join(cookie.OutputString() for cookie in cookies)


def unstringify_cookies(text: str) -> list[Morsel]:
    """Parse Set-Cookie values, one per line; invalid lines are skipped."""
    result: list[Morsel] = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        parsed = SimpleCookie()
        try:
            parsed.load(line)
        except CookieError:
            continue
        result.extend(parsed.values())
    return result


def contains_cookie(cookies: Iterable[Morsel], name: str) -> bool:
    """Tell whether a cookie with the given name is among the cookies."""
    return any(cookie.key == name for cookie in cookies)