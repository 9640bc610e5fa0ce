"""HTTP requests made by a collector and their serialised form."""

from __future__ import annotations

import base64
import itertools
import json
import threading
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from requests.structures import CaseInsensitiveDict

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def normalize_url(url: str) -> str:
    """Return the canonical form of an absolute URL; raise ValueError if invalid."""
    text = url.strip().replace("\t", "").replace("\n", "").replace("\r", "")
    parts = urlsplit(text)
    scheme = parts.scheme.lower()
    if not scheme:
        raise ValueError(f"invalid URL {url!r}: missing scheme")
    port = parts.port
    if scheme in _DEFAULT_PORTS:
        host = parts.hostname
        if not host:
            raise ValueError(f"invalid URL {url!r}: missing host")
        if ":" in host:
            host = f"[{host}]"
        netloc = host
        if port is not None and port != _DEFAULT_PORTS[scheme]:
            netloc += f":{port}"
        userinfo, sep, _ = parts.netloc.rpartition("@")
        if sep:
            netloc = f"{userinfo}@{netloc}"
        path = parts.path or "/"
    else:
        netloc = parts.netloc
        path = parts.path
    return urlunsplit(
        (
            scheme,
            netloc,
            quote(path, safe=_PATH_SAFE),
            quote(parts.query, safe=_QUERY_SAFE),
            quote(parts.fragment, safe=_QUERY_SAFE),
        )
    )


class _IdSource:
    """Thread-safe source of increasing request identifiers."""

    def __init__(self) -> None:
        self._count = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._count)


@dataclass
class Request:
    """An HTTP request made by a collector."""

    url: str
    method: str = "GET"
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    host: str = ""
    ctx: dict[str, Any] = field(default_factory=dict)
    depth: int = 0
    body: bytes | None = None
    response_character_encoding: str = ""
    id: int = 0
    proxy_url: str = ""
    base_url: str | None = None
    aborted: bool = False
    collector: Any = field(default=None, repr=False, compare=False)
    _ids: _IdSource = field(default_factory=_IdSource, init=False, repr=False, compare=False)

    def new(self, method: str, url: str, body: bytes | None = None) -> Request:
        """Create a request that shares this request's context."""
        child = Request(
            url=normalize_url(url),
            method=method,
            body=body,
            ctx=self.ctx,
            headers=CaseInsensitiveDict(),
            host=self.host,
            id=self._ids.next(),
            collector=self.collector,
        )
        child._ids = self._ids
        return child

    def abort(self) -> None:
        """Cancel the request; meant to be called from a request hook."""
        self.aborted = True

    def absolute_url(self, url: str) -> str:
        """Resolve a URL chunk against the page; "" for fragments or bad URLs."""
        if url.startswith("#"):
            return ""
        base = self.base_url or self.url
        try:
            return normalize_url(urljoin(base, url))
        except ValueError:
            return ""

    def marshal(self) -> bytes:
        """Serialise the request to JSON."""
        document = {
            "URL": self.url,
            "Method": self.method,
            "Depth": self.depth,
            "Body": base64.b64encode(self.body).decode("ascii") if self.body else None,
            "ID": self.id,
            "Ctx": dict(self.ctx) if self.ctx is not None else {},
            "Headers": {key: [value] for key, value in self.headers.items()},
            "Host": self.host,
        }
        return json.dumps(document, separators=(",", ":")).encode("utf-8")

    @classmethod
    def unmarshal(cls, data: bytes | str) -> Request:
        """Rebuild a request from the output of marshal()."""
        document = json.loads(data)
        if not isinstance(document, dict) or "URL" not in document:
            raise ValueError("serialised request has no URL")
        headers = CaseInsensitiveDict()
        for key, values in (document.get("Headers") or {}).items():
            headers[key] = ", ".join(values) if isinstance(values, list) else str(values)
        body = document.get("Body")
        return cls(
            url=document["URL"],
            method=document.get("Method") or "GET",
            depth=document.get("Depth") or 0,
            body=base64.b64decode(body) if body else None,
            id=document.get("ID") or 0,
            ctx=dict(document.get("Ctx") or {}),
            headers=headers,
            host=document.get("Host") or "",
        )