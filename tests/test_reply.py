from edgekit.httpcache.reply import ResponseCache
from edgekit.persist.codec import deserialize, serialize

HEADERS = [("Content-Type", "application/json"), ("Request-ID", "XxxXxX")]


def test_from_response_keeps_all_headers():
    cache = ResponseCache.from_response(200, HEADERS, b"body")
    assert cache.status == 200
    assert cache.headers == HEADERS
    assert cache.data == b"body"


def test_from_response_without_header_keeps_only_listed():
    cache = ResponseCache.from_response(200, HEADERS, b"body", True, ["Content-Type"])
    assert cache.headers == [("Content-Type", "application/json")]
    assert cache.header("Request-ID") == ""


def test_listed_header_missing_from_response_is_empty():
    cache = ResponseCache.from_response(200, HEADERS, b"", True, ["X-Missing"])
    assert cache.headers == [("X-Missing", "")]


def test_header_lookup_ignores_case():
    cache = ResponseCache.from_response(200, HEADERS, b"")
    assert cache.header("content-type") == "application/json"
    assert cache.header("REQUEST-ID") == "XxxXxX"


def test_reply_headers_last_value_wins():
    cache = ResponseCache(200, [("X-A", "1"), ("x-a", "2"), ("X-B", "3")], b"")
    replied = cache.reply_headers(False, [])
    assert [value for name, value in replied if name.lower() == "x-a"] == ["2"]
    assert ("X-B", "3") in replied
    assert len(replied) == 2


def test_reply_headers_without_header():
    cache = ResponseCache.from_response(200, HEADERS, b"")
    assert cache.reply_headers(True, ["Content-Type"]) == [("Content-Type", "application/json")]


def test_data_is_copied_to_bytes():
    buffer = bytearray(b"abc")
    cache = ResponseCache.from_response(201, [], buffer)
    buffer[0] = ord("z")
    assert cache.data == b"abc"
    assert isinstance(cache.data, bytes)


def test_round_trip_through_codec():
    cache = ResponseCache.from_response(200, HEADERS, b"payload")
    assert deserialize(serialize(cache)) == cache