import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from gatherer.trace import HTTPTrace

TEST_DELAY = 0.2


def _make_server(delay):
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            time.sleep(delay)
            self.send_response(500 if self.path == "/error" else 200)
            self.send_header("Content-Length", "0")
            self.end_headers()

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    threading.Thread(target=server.serve_forever, daemon=True).start()
    return server


@pytest.fixture
def server_factory():
    servers = []

    def factory(delay):
        server = _make_server(delay)
        servers.append(server)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}"

    yield factory
    for server in servers:
        server.shutdown()
        server.server_close()


def test_trace_with_no_delay(server_factory):
    url = server_factory(0)
    trace = HTTPTrace()
    result = trace.perform("GET", url, None, None)
    assert result.status == 200
    assert trace.connect_duration <= TEST_DELAY
    assert trace.first_byte_duration <= TEST_DELAY


def test_trace_with_delay(server_factory):
    url = server_factory(TEST_DELAY)
    trace = HTTPTrace()
    result = trace.perform("GET", url, None, None)
    assert result.status == 200
    assert trace.connect_duration <= TEST_DELAY
    assert trace.first_byte_duration >= TEST_DELAY


def test_trace_error_status(server_factory):
    url = server_factory(0)
    trace = HTTPTrace()
    result = trace.perform("GET", url + "/error", None, None)
    assert result.status == 500
    assert trace.first_byte_duration >= trace.connect_duration


def test_unsupported_scheme():
    with pytest.raises(ValueError):
        HTTPTrace().perform("GET", "ftp://example.com/", None, None)