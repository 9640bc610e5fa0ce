import json
import urllib.request

import pytest

from gatherer.debug import Event
from gatherer.webdebugger import WebDebugger


@pytest.fixture
def debugger():
    dbg = WebDebugger(address="127.0.0.1:0")
    dbg.init()
    yield dbg
    dbg.close()


def _get(dbg, path):
    host, port = dbg.bound_address
    with urllib.request.urlopen(f"http://{host}:{port}{path}", timeout=5) as resp:
        return resp.read().decode()


def test_request_event_is_current(debugger):
    debugger.event(Event("request", 5, 2, {"url": "http://example.com/a"}))
    status = debugger.status()
    assert status["CurrentRequests"]["5"]["URL"] == "http://example.com/a"
    assert status["CurrentRequests"]["5"]["CollectorID"] == 2
    assert status["RequestLog"] == []


def test_response_moves_request_to_log(debugger):
    debugger.event(Event("request", 5, 2, {"url": "http://example.com/a"}))
    debugger.event(Event("response", 5, 2, {"status": "OK"}))
    status = debugger.status()
    assert status["CurrentRequests"] == {}
    assert len(status["RequestLog"]) == 1
    entry = status["RequestLog"][0]
    assert entry["URL"] == "http://example.com/a"
    assert entry["ResponseStatus"] == "OK"
    assert entry["Duration"] >= 0


def test_error_event_is_logged(debugger):
    debugger.event(Event("request", 9, 1, {"url": "http://example.com/b"}))
    debugger.event(Event("error", 9, 1, {"status": "Not Found"}))
    assert [e["ResponseStatus"] for e in debugger.status()["RequestLog"]] == ["Not Found"]


def test_other_events_are_ignored(debugger):
    debugger.event(Event("html", 3, 1, {"selector": "a"}))
    status = debugger.status()
    assert status["CurrentRequests"] == {}
    assert status["RequestLog"] == []


def test_status_is_served_as_json(debugger):
    debugger.event(Event("request", 1, 1, {"url": "http://example.com/"}))
    data = json.loads(_get(debugger, "/status"))
    assert data["CurrentRequests"]["1"]["URL"] == "http://example.com/"


def test_index_page_is_served(debugger):
    page = _get(debugger, "/")
    assert "Current Requests" in page
    assert "/status" in page


def test_init_is_idempotent(debugger):
    before = debugger.bound_address
    debugger.event(Event("request", 1, 1, {"url": "http://example.com/"}))
    debugger.init()
    assert debugger.bound_address == before
    assert "1" in debugger.status()["CurrentRequests"]


def test_default_address():
    dbg = WebDebugger(address="")
    assert dbg.bound_address is None
    dbg.address = "127.0.0.1:0"
    dbg.init()
    try:
        assert dbg.bound_address[0] == "127.0.0.1"
        assert dbg.bound_address[1] > 0
    finally:
        dbg.close()
    assert dbg.bound_address is None