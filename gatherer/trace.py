"""Timing of the connection and the first response byte of a request."""

from __future__ import annotations

import http.client
import time
from dataclasses import dataclass, field
from urllib.parse import urlsplit


@dataclass
class TracedResponse:
    """Status, headers and body of a traced request."""

    status: int
    headers: dict[str, str]
    body: bytes


@dataclass
class HTTPTrace:
    """Records connect and first-byte durations, in seconds."""

    connect_duration: float = 0.0
    first_byte_duration: float = 0.0
    timeout: float = field(default=10.0, repr=False)

    def perform(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> TracedResponse:
        """Send a request and fill in the timings while doing so."""
        parts = urlsplit(url)
        if parts.scheme == "https":
            connection_class = http.client.HTTPSConnection
        elif parts.scheme in ("http", ""):
            connection_class = http.client.HTTPConnection
        else:
            raise ValueError(f"unsupported URL scheme: {parts.scheme!r}")
        if not parts.hostname:
            raise ValueError(f"URL has no host: {url!r}")
        target = parts.path or "/"
        if parts.query:
            target += "?" + parts.query

        start = time.monotonic()
        conn = connection_class(parts.hostname, parts.port, timeout=self.timeout)
        try:
            connect_start = time.monotonic()
            conn.connect()
            self.connect_duration = time.monotonic() - connect_start
            conn.request(method, target, body=body, headers=headers or {})
            response = conn.getresponse()
            self.first_byte_duration = time.monotonic() - start
            payload = response.read()
            return TracedResponse(response.status, dict(response.getheaders()), payload)
        finally:
            conn.close()