import base64
import json

import pytest

from gatherer.request import Request, normalize_url


def make_request():
    r = Request(
        url="http://example.com/path?x=1",
        method="POST",
        body=b"data",
        ctx={"k": "v"},
        depth=2,
        id=7,
        host="example.com",
    )
    r.headers["Accept"] = "text/html"
    return r


def test_marshal_round_trip():
    original = make_request()
    restored = Request.unmarshal(original.marshal())
    assert restored.url == original.url
    assert restored.method == "POST"
    assert restored.body == b"data"
    assert restored.ctx == {"k": "v"}
    assert restored.depth == 2
    assert restored.id == 7
    assert restored.host == "example.com"
    assert restored.headers["accept"] == "text/html"


def test_marshal_document_keys():
    doc = json.loads(make_request().marshal())
    assert set(doc) == {"URL", "Method", "Depth", "Body", "ID", "Ctx", "Headers", "Host"}
    assert base64.b64decode(doc["Body"]) == b"data"
    assert doc["Headers"]["Accept"] == ["text/html"]


def test_marshal_without_body_gives_null():
    doc = json.loads(Request(url="http://example.com/").marshal())
    assert doc["Body"] is None
    assert Request.unmarshal(json.dumps(doc)).body is None


def test_unmarshal_rejects_garbage():
    with pytest.raises(ValueError):
        Request.unmarshal(b"error request")


def test_new_shares_context_and_counts_ids():
    parent = make_request()
    first = parent.new("GET", "http://example.com/a", None)
    second = parent.new("GET", "http://example.com/b", None)
    assert first.ctx is parent.ctx
    assert first.host == parent.host
    assert second.id > first.id
    assert second.new("GET", "http://example.com/c", None).id > second.id


def test_new_normalizes_url():
    child = make_request().new("GET", "HTTP://Example.COM", None)
    assert child.url == "http://example.com/"


def test_new_rejects_relative_url():
    with pytest.raises(ValueError):
        make_request().new("GET", "not a url", None)


def test_abort_sets_flag():
    r = make_request()
    assert r.aborted is False
    r.abort()
    assert r.aborted is True


def test_absolute_url_resolves_relative():
    r = Request(url="http://example.com/a/b")
    assert r.absolute_url("c") == "http://example.com/a/c"
    assert r.absolute_url("http://example.com/x") == "http://example.com/x"


def test_absolute_url_fragment_and_invalid():
    r = Request(url="http://example.com/a/b")
    assert r.absolute_url("#top") == ""
    assert r.absolute_url("http://[::1") == ""


def test_absolute_url_prefers_base_url():
    r = Request(url="http://example.com/a/b", base_url="http://example.com/other/")
    assert r.absolute_url("page").startswith("http://example.com/other/")


def test_normalize_url_idempotent():
    once = normalize_url("http://example.com:80/some path")
    assert normalize_url(once) == once
    assert " " not in once