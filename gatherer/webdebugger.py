"""A debugger that serves the collector's request status over HTTP."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from .debug import Debugger, Event

log = logging.getLogger(__name__)

_INDEX_PAGE = """<!DOCTYPE html>
<html>
<head>
 <title>Debugger WebUI</title>
 <style>
  body { font-family: sans-serif; margin: 2em; }
  .columns { display: flex; gap: 2em; }
  .column { flex: 1; }
  .event { border-bottom: 1px solid #ddd; padding: .4em 0; }
  .meta { color: #777; font-size: .85em; }
 </style>
</head>
<body>
<div class="columns">
 <div class="column">
  <h1>Current Requests <span id="current_request_count"></span></h1>
  <div id="current_requests"></div>
 </div>
 <div class="column">
  <h1>Finished Requests <span id="request_log_count"></span></h1>
  <div id="request_log"></div>
 </div>
</div>
<script>
function entry(url, meta) {
  var div = document.createElement("div");
  div.className = "event";
  var summary = document.createElement("div");
  summary.textContent = url;
  var info = document.createElement("div");
  info.className = "meta";
  info.textContent = meta;
  div.appendChild(summary);
  div.appendChild(info);
  return div;
}
function fetchStatus() {
  fetch("/status").then(function(r) { return r.json(); }).then(function(data) {
    var current = document.getElementById("current_requests");
    var finished = document.getElementById("request_log");
    current.innerHTML = "";
    finished.innerHTML = "";
    var keys = Object.keys(data.CurrentRequests);
    document.getElementById("current_request_count").textContent = "(" + keys.length + ")";
    document.getElementById("request_log_count").textContent = "(" + data.RequestLog.length + ")";
    keys.forEach(function(k) {
      var r = data.CurrentRequests[k];
      current.appendChild(entry(r.URL, "Collector #" + r.CollectorID + " - " + r.Started));
    });
    data.RequestLog.reverse().forEach(function(r) {
      finished.appendChild(entry(r.URL, "Collector #" + r.CollectorID + " - " + (r.Duration / 1000000000) + "s"));
    });
    setTimeout(fetchStatus, 1000);
  });
}
fetchStatus();
</script>
</body>
</html>
"""


@dataclass
class _RequestInfo:
    url: str = ""
    started: datetime | None = None
    started_clock: float | None = None
    duration_ns: int = 0
    response_status: str = ""
    id: int = 0
    collector_id: int = 0

    def as_dict(self) -> dict:
        return {
            "URL": self.url,
            "Started": self.started.isoformat() if self.started else None,
            "Duration": self.duration_ns,
            "ResponseStatus": self.response_status,
            "ID": self.id,
            "CollectorID": self.collector_id,
        }


@dataclass
class WebDebugger(Debugger):
    """Tracks running and finished requests and serves them as a web page."""

    address: str = ""
    current_requests: dict[int, _RequestInfo] = field(default_factory=dict)
    request_log: list[_RequestInfo] = field(default_factory=list)
    _initialized: bool = field(default=False, init=False, repr=False)
    _server: ThreadingHTTPServer | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def bound_address(self) -> tuple[str, int] | None:
        """The host and port the server actually listens on."""
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return host, port

    def init(self) -> None:
        if self._initialized:
            return
        if not self.address:
            self.address = "127.0.0.1:7676"
        self.request_log = []
        self.current_requests = {}
        host, _, port = self.address.rpartition(":")
        self._server = ThreadingHTTPServer((host, int(port)), self._handler_class())
        self._server.daemon_threads = True
        log.info("Starting debug webserver on %s", self.address)
        threading.Thread(target=self._server.serve_forever, daemon=True).start()
        self._initialized = True

    def event(self, event: Event) -> None:
        with self._lock:
            if event.type == "request":
                self.current_requests[event.request_id] = _RequestInfo(
                    url=event.values.get("url", ""),
                    started=datetime.now(timezone.utc).astimezone(),
                    started_clock=time.monotonic(),
                    id=event.request_id,
                    collector_id=event.collector_id,
                )
            elif event.type in ("response", "error"):
                info = self.current_requests.pop(event.request_id, None) or _RequestInfo()
                if info.started_clock is not None:
                    info.duration_ns = int((time.monotonic() - info.started_clock) * 1e9)
                info.response_status = event.values.get("status", "")
                self.request_log.append(info)

    def status(self) -> dict:
        """Return the current state as a JSON-serialisable mapping."""
        with self._lock:
            return {
                "Address": self.address,
                "CurrentRequests": {
                    str(key): info.as_dict() for key, info in self.current_requests.items()
                },
                "RequestLog": [info.as_dict() for info in self.request_log],
            }

    def close(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        self._initialized = False

    def _handler_class(self):
        debugger = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                if self.path.split("?", 1)[0] == "/status":
                    payload = json.dumps(debugger.status(), indent=2).encode()
                    content_type = "application/json"
                else:
                    payload = _INDEX_PAGE.encode()
                    content_type = "text/html; charset=utf-8"
                self.send_response(200)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            def log_message(self, format, *args):
                log.debug(format, *args)

        return Handler