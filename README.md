# gatherer

Building blocks for writing web scrapers in Python: request and response
objects, XPath extraction, per-domain rate limits, an on-disk response cache,
proxy rotation, user-agent hooks and debugging helpers.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `gatherer.request` – `Request` holds the URL, method, headers, body, depth,
  a shared context dictionary and an identifier. `new()` creates a request
  sharing the context, `abort()` marks it as cancelled, `absolute_url()`
  resolves a link against the page (returning `""` for fragments and invalid
  URLs), and `marshal()` / `Request.unmarshal()` convert it to and from JSON.
  `normalize_url()` returns the canonical form of an absolute URL.
- `gatherer.response` – `Response` holds the status code, body and headers.
  `save()` writes the body to a file, `file_name()` derives a safe file name
  from the `Content-Disposition` header or the request URL, and
  `fix_charset()` converts the body to UTF-8 from its declared charset, from a
  given default encoding, or (with `detect_charset=True`) from a detected one.
  `encode_bytes()` and `sanitize_file_name()` are available on their own.
- `gatherer.http_backend` – `HTTPBackend` performs requests with `requests`.
  `limit()` / `limits()` add `LimitRule`s that match hosts by regular
  expression (`domain_regexp`) or glob (`domain_glob`, with `*`, `?`, `[...]`
  and `{a,b}`) and restrict them by `parallelism`, `delay` and `random_delay`
  (in seconds). `cache()` serves GET requests from a cache directory and stores
  responses below status 500. A header check passed to `do()` or `cache()` can
  reject a response, raising `AbortedAfterHeadersError`; a rule without a
  pattern raises `NoPatternError`. Gzip bodies are unpacked, and `body_size`
  caps how much of a body is read.
- `gatherer.xmlelement` – `XMLElement` wraps an `lxml` node from an HTML
  (`from_html_node()`) or XML (`from_xml_node()`) document and offers
  `attr()`, `child_text()`, `child_texts()`, `child_attr()` and
  `child_attrs()` driven by XPath. Absolute queries are evaluated with the
  element as the root.
- `gatherer.storage` – `InMemoryStorage` records visited request identifiers
  and keeps cookies per URL; `stringify_cookies()`, `unstringify_cookies()`
  and `contains_cookie()` handle cookies as `Set-Cookie` lines.
- `gatherer.proxy` – `RoundRobinProxySwitcher` and
  `round_robin_proxy_switcher()` hand out proxy URLs in turn and record the
  chosen one on the request's `proxy_url`. An empty list raises
  `EmptyProxyURLError`.
- `gatherer.extensions` – `random_desktop_user_agent()` and
  `random_mobile_user_agent()` generate browser user-agent strings; the hooks
  `random_user_agent()`, `random_mobile_user_agent_hook()`,
  `referer_on_response()`, `referer_on_request()` and `url_length_filter()`
  modify or abort requests.
- `gatherer.debug` – `Event` and the `Debugger` interface; `LogDebugger`
  writes one numbered line per event to a stream (standard error by default).
- `gatherer.webdebugger` – `WebDebugger` serves a status page and a JSON
  `/status` endpoint on `127.0.0.1:7676` by default; `status()` returns the
  same data and `close()` stops the server.
- `gatherer.trace` – `HTTPTrace.perform()` sends a request and records
  `connect_duration` and `first_byte_duration` in seconds.

## Examples

Fetching a page under a rate limit:

```python
from gatherer.http_backend import HTTPBackend, LimitRule
from gatherer.request import Request

backend = HTTPBackend()
backend.init(None)
backend.limit(LimitRule(domain_glob="*.example.com", parallelism=2, delay=1.0))

response = backend.cache(Request(url="https://www.example.com/"), cache_dir="cache")
response.fix_charset(detect_charset=True)
print(response.status_code, response.file_name())
```

Extracting data with XPath:

```python
from lxml import html

from gatherer.xmlelement import XMLElement

root = html.fromstring("<html><body><ul><li class='a'>One</li><li class='b'>Two</li></ul></body></html>")
element = XMLElement.from_html_node(None, root)
print(element.child_texts("//li"))              # ['One', 'Two']
print(element.child_attrs("/body/ul/li", "class"))  # ['a', 'b']
```

## What it does not do

The package provides the pieces of a scraper, not the scraper itself. There is
no crawler that follows links and dispatches hooks: the request hooks in
`gatherer.extensions` and the header checks of `HTTPBackend` have to be called
by your own code. There is no CSS-selector extraction, no declarative
extraction into data classes, and no request queue; `XMLElement` with XPath is
the only extraction helper. The package has no command-line program.