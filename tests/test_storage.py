import pytest

from gatherer.storage import (
    InMemoryStorage,
    Storage,
    contains_cookie,
    stringify_cookies,
    unstringify_cookies,
)


def test_visited_ids():
    store = InMemoryStorage()
    assert store.is_visited(42) is False
    store.visited(42)
    assert store.is_visited(42) is True
    assert store.is_visited(43) is False


def test_init_keeps_existing_data():
    store = InMemoryStorage()
    store.visited(1)
    store.init()
    assert store.is_visited(1) is True


def test_cookies_round_trip_through_jar():
    store = InMemoryStorage()
    store.set_cookies("http://example.com/", "session=token; Path=/\ntheme=placeholder; Path=/")
    stored = store.cookies("http://example.com/page").split("\n")
    assert sorted(stored) == ["session=token", "theme=placeholder"]


def test_cookies_are_per_host():
    store = InMemoryStorage()
    store.set_cookies("http://example.com/", "session=token; Path=/")
    assert store.cookies("http://other.example.org/") == ""


def test_set_empty_cookie_text_stores_nothing():
    store = InMemoryStorage()
    store.set_cookies("http://example.com/", "")
    assert store.cookies("http://example.com/") == ""


def test_stringify_unstringify_round_trip():
    text = "session=token; Path=/\ntheme=placeholder"
    assert stringify_cookies(unstringify_cookies(text)) == text


def test_unstringify_skips_invalid_and_empty_lines():
    cookies = unstringify_cookies("session=token\n\nbroken")
    assert [c.key for c in cookies] == ["session"]
    assert cookies[0].value == "token"


def test_contains_cookie():
    cookies = unstringify_cookies("session=token\ntheme=placeholder")
    assert contains_cookie(cookies, "theme") is True
    assert contains_cookie(cookies, "missing") is False
    assert contains_cookie([], "session") is False


def test_stringify_empty_list():
    assert stringify_cookies([]) == ""


def test_storage_is_abstract():
    with pytest.raises(TypeError):
        Storage()