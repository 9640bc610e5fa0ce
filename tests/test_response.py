import pytest
from requests.structures import CaseInsensitiveDict

from gatherer.request import Request
from gatherer.response import Response, encode_bytes, sanitize_file_name


def make_response(body, content_type=None, url="http://example.com/page"):
    headers = CaseInsensitiveDict()
    if content_type:
        headers["Content-Type"] = content_type
    return Response(status_code=200, body=body, headers=headers, request=Request(url=url))


def test_save_writes_body(tmp_path):
    target = tmp_path / "out.bin"
    make_response(b"\x00payload").save(target)
    assert target.read_bytes() == b"\x00payload"


def test_file_name_from_content_disposition():
    resp = make_response(b"x")
    resp.headers["Content-Disposition"] = 'attachment; filename="report.pdf"'
    assert resp.file_name() == "report.pdf"


def test_file_name_from_url_without_extension():
    name = make_response(b"x", url="http://example.com/docs/page").file_name()
    assert name.endswith(".unknown")
    assert "/" not in name


def test_file_name_with_query():
    name = make_response(b"x", url="http://example.com/search?q=1").file_name()
    assert "search" in name
    assert "?" not in name and "=" not in name


def test_sanitize_keeps_extension():
    assert sanitize_file_name("index.html") == "index.html"
    assert sanitize_file_name("my file.txt") == "my_file.txt"


def test_sanitize_output_is_safe():
    name = sanitize_file_name("../../etc/pass wd.cfg")
    assert "/" not in name
    assert " " not in name
    assert name.endswith(".cfg")


def test_fix_charset_declared_latin1():
    resp = make_response("café".encode("latin-1"), "text/html; charset=iso-8859-1")
    resp.fix_charset(False, "")
    assert resp.body == "café".encode("utf-8")


def test_fix_charset_default_encoding_wins():
    resp = make_response("naïve".encode("cp1252"), "text/html; charset=utf-8")
    resp.fix_charset(False, "windows-1252")
    assert resp.body == "naïve".encode("utf-8")


def test_fix_charset_leaves_utf8_alone():
    body = "żółw".encode("utf-8")
    resp = make_response(body, "text/html; charset=UTF-8")
    resp.fix_charset(True, "")
    assert resp.body == body


def test_fix_charset_skips_binary_types():
    body = "é".encode("latin-1")
    resp = make_response(body, "image/png; charset=iso-8859-1")
    resp.fix_charset(True, "")
    assert resp.body == body


def test_fix_charset_without_charset_and_no_detection():
    body = "é".encode("latin-1")
    resp = make_response(body, "text/html")
    resp.fix_charset(False, "")
    assert resp.body == body


def test_fix_charset_empty_body():
    resp = make_response(b"", "text/html; charset=iso-8859-1")
    resp.fix_charset(True, "")
    assert resp.body == b""


def test_fix_charset_detection_produces_utf8():
    text = "Ceci est un texte français assez long pour être détecté correctement. " * 5
    resp = make_response(text.encode("cp1252"), "text/plain")
    resp.fix_charset(True, "")
    assert resp.body.decode("utf-8")


def test_encode_bytes_honours_bom():
    assert encode_bytes("hi".encode("utf-16"), "text/plain") == b"hi"


@pytest.mark.parametrize("codec", ["latin-1", "cp1252"])
def test_encode_bytes_round_trip(codec):
    text = "über"
    assert encode_bytes(text.encode(codec), f"text/plain; charset={codec}").decode("utf-8") == text