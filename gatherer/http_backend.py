"""HTTP transport with per-domain limits and an on-disk response cache."""

from __future__ import annotations

import base64
import gzip
import hashlib
import json
import os
import random
import re
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from http.cookiejar import CookieJar
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from .request import Request
from .response import Response

CheckHeaders = Callable[[Request, int, Any], bool]


class NoPatternError(ValueError):
    """Raised when a limit rule has neither a regexp nor a glob."""

    def __init__(self) -> None:
        super().__init__("No pattern defined in LimitRule")


class AbortedAfterHeadersError(RuntimeError):
    """Raised when the header check rejects a response."""

    def __init__(self) -> None:
        super().__init__("Aborted after receiving response headers")


def _headers_accepted(
    check: CheckHeaders | None, request: Request, status_code: int, headers: Any
) -> bool:
    """Run the header check if there is one; no check accepts everything."""
    if check is None:
        return True
    return bool(check(request, status_code, headers))


def _compile_glob(pattern: str) -> re.Pattern:
    """Translate a glob with *, ?, [...], [!...] and {a,b} into a regex."""
    out: list[str] = []
    depth = 0
    position = 0
    length = len(pattern)
    while position < length:
        char = pattern[position]
        if char == "\\":
            if position + 1 >= length:
                raise ValueError(f"unexpected end of glob pattern {pattern!r}")
            out.append(re.escape(pattern[position + 1]))
            position += 2
            continue
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char == "[":
            end = pattern.find("]", position + 1)
            if end == -1:
                raise ValueError(f"unclosed character class in glob {pattern!r}")
            body = pattern[position + 1:end]
            negated = body.startswith("!")
            if negated:
                body = body[1:]
            if not body:
                raise ValueError(f"empty character class in glob {pattern!r}")
            body = body.replace("\\", "\\\\").replace("^", "\\^").replace("[", "\\[")
            out.append("[" + ("^" if negated else "") + body + "]")
            position = end
        elif char == "{":
            depth += 1
            out.append("(?:")
        elif char == "}" and depth:
            depth -= 1
            out.append(")")
        elif char == "," and depth:
            out.append("|")
        else:
            out.append(re.escape(char))
        position += 1
    if depth:
        raise ValueError(f"unclosed brace in glob {pattern!r}")
    return re.compile("".join(out), re.DOTALL)


@dataclass
class LimitRule:
    """Connection restrictions for domains matching a regexp or a glob.

    Delays are in seconds. With a delay, parallelism is one unless raised.
    """

    domain_regexp: str = ""
    domain_glob: str = ""
    delay: float = 0.0
    random_delay: float = 0.0
    parallelism: int = 0
    _semaphore: threading.Semaphore | None = field(default=None, init=False, repr=False)
    _regexp: re.Pattern | None = field(default=None, init=False, repr=False)
    _glob: re.Pattern | None = field(default=None, init=False, repr=False)

    def init(self) -> None:
        """Compile the patterns and prepare the concurrency slots."""
        self._semaphore = threading.Semaphore(max(1, self.parallelism))
        has_pattern = False
        if self.domain_regexp:
            self._regexp = re.compile(self.domain_regexp)
            has_pattern = True
        if self.domain_glob:
            self._glob = _compile_glob(self.domain_glob)
            has_pattern = True
        if not has_pattern:
            raise NoPatternError()

    def match(self, domain: str) -> bool:
        """Tell whether the rule applies to a domain."""
        if self._regexp is not None and self._regexp.search(domain):
            return True
        return self._glob is not None and self._glob.fullmatch(domain) is not None

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold one concurrency slot, waiting the delay before giving it back."""
        if self._semaphore is None:
            self.init()
        self._semaphore.acquire()
        try:
            yield
        finally:
            extra = random.uniform(0, self.random_delay) if self.random_delay else 0.0
            time.sleep(self.delay + extra)
            self._semaphore.release()


def _dump_response(response: Response) -> dict:
    return {
        "StatusCode": response.status_code,
        "Body": base64.b64encode(response.body).decode("ascii"),
        "Headers": {key: [value] for key, value in response.headers.items()},
    }


def _load_cached(path: Path) -> Response | None:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        headers = CaseInsensitiveDict(
            {key: ", ".join(values) for key, values in document["Headers"].items()}
        )
        return Response(
            status_code=int(document["StatusCode"]),
            body=base64.b64decode(document["Body"]),
            headers=headers,
        )
    except (OSError, ValueError, KeyError, TypeError, AttributeError):
        return None


class HTTPBackend:
    """Performs requests, honouring limit rules and an optional cache."""

    def __init__(self, limit_rules: Iterable[LimitRule] | None = None, timeout: float = 10.0) -> None:
        self.limit_rules: list[LimitRule] = list(limit_rules or [])
        self.timeout = timeout
        self.session: requests.Session | None = None
        self._lock = threading.RLock()

    def init(self, cookie_jar: CookieJar | None = None) -> None:
        """Create the HTTP session, optionally with a cookie jar."""
        self.session = requests.Session()
        if cookie_jar is not None:
            self.session.cookies = cookie_jar

    def get_matching_rule(self, domain: str) -> LimitRule | None:
        """Return the first rule matching the domain, if any."""
        with self._lock:
            return next((rule for rule in self.limit_rules if rule.match(domain)), None)

    def cache(
        self,
        request: Request,
        body_size: int = 0,
        check_headers: CheckHeaders | None = None,
        cache_dir: str | Path = "",
    ) -> Response:
        """Serve GET requests from the cache directory, filling it on a miss."""
        if not cache_dir or request.method != "GET" or request.headers.get("Cache-Control") == "no-cache":
            return self.do(request, body_size, check_headers)
        digest = hashlib.sha1(request.url.encode("utf-8")).hexdigest()
        directory = Path(cache_dir) / digest[:2]
        path = directory / digest
        cached = _load_cached(path)
        if cached is not None:
            _headers_accepted(check_headers, request, cached.status_code, cached.headers)
            if cached.status_code < 500:
                return cached
        response = self.do(request, body_size, check_headers)
        if response.status_code >= 500:
            return response
        directory.mkdir(mode=0o750, parents=True, exist_ok=True)
        temporary = path.with_name(path.name + "~")
        temporary.write_text(json.dumps(_dump_response(response)), encoding="utf-8")
        os.replace(temporary, path)
        return response

    def do(
        self,
        request: Request,
        body_size: int = 0,
        check_headers: CheckHeaders | None = None,
    ) -> Response:
        """Perform a request under the limit rule of its host."""
        host = urlsplit(request.url).netloc.rpartition("@")[2]
        rule = self.get_matching_rule(host)
        if rule is None:
            return self._fetch(request, body_size, check_headers)
        with rule.slot():
            return self._fetch(request, body_size, check_headers)

    def _fetch(self, request: Request, body_size: int, check: CheckHeaders | None) -> Response:
        if self.session is None:
            self.init()
        proxies = {"http": request.proxy_url, "https": request.proxy_url} if request.proxy_url else None
        with self.session.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            data=request.body,
            timeout=self.timeout,
            stream=True,
            proxies=proxies,
        ) as res:
            request.url = res.url
            if not _headers_accepted(check, request, res.status_code, res.headers):
                raise AbortedAfterHeadersError()
            chunks: list[bytes] = []
            total = 0
            for chunk in res.iter_content(65536):
                chunks.append(chunk)
                total += len(chunk)
                if body_size > 0 and total >= body_size:
                    break
            body = b"".join(chunks)
            if body_size > 0:
                body = body[:body_size]
            encoding = res.headers.get("Content-Encoding", "").lower()
            content_type = res.headers.get("Content-Type", "").lower()
            decoded_by_transport = "gzip" in encoding
            if not decoded_by_transport and (
                (encoding == "" and "gzip" in content_type)
                or urlsplit(request.url).path.lower().endswith(".xml.gz")
            ):
                body = gzip.decompress(body)
            return Response(
                status_code=res.status_code,
                body=body,
                headers=CaseInsensitiveDict(res.headers),
            )

    def limit(self, rule: LimitRule) -> None:
        """Add a limit rule and initialise it."""
        with self._lock:
            self.limit_rules.append(rule)
        rule.init()

    def limits(self, rules: Iterable[LimitRule]) -> None:
        """Add several limit rules, stopping at the first invalid one."""
        for rule in rules:
            self.limit(rule)