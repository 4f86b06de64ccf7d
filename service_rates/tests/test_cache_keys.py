"""
Unit tests for cache key derivation.
"""

from service_rates.app.caching import derive_cache_key


def _scope(path="/", query=b"", method="GET"):
    return {"type": "http", "method": method, "path": path, "query_string": query}


def test_key_is_path_without_query():
    assert derive_cache_key(_scope("/btc-exchange-rate/")) == "/btc-exchange-rate/"


def test_key_includes_raw_query_string():
    assert derive_cache_key(_scope("/x", b"a=1")) == "/x?a=1"


def test_different_query_values_give_different_keys():
    assert derive_cache_key(_scope("/x", b"a=1")) != derive_cache_key(_scope("/x", b"a=2"))


def test_query_parameter_order_is_not_normalised():
    assert derive_cache_key(_scope("/x", b"a=1&b=2")) != derive_cache_key(_scope("/x", b"b=2&a=1"))


def test_trailing_slash_is_significant():
    assert derive_cache_key(_scope("/x")) != derive_cache_key(_scope("/x/"))


def test_method_is_ignored():
    assert derive_cache_key(_scope("/x", b"a=1", "GET")) == derive_cache_key(_scope("/x", b"a=1", "POST"))


def test_same_request_gives_same_key():
    scope = _scope("/x", b"a=1")
    assert derive_cache_key(scope) == derive_cache_key(dict(scope))


def test_degenerate_scopes_still_produce_a_key():
    assert derive_cache_key({}) == "/"
    assert derive_cache_key({"path": "", "query_string": b""}) == "/"
    assert derive_cache_key({"path": None, "query_string": None}) == "/"


def test_malformed_query_bytes_do_not_raise():
    key = derive_cache_key(_scope("/x", b"q=\xff\xfe"))
    assert key.startswith("/x?q=")
    assert key == derive_cache_key(_scope("/x", b"q=\xff\xfe"))


def test_key_uses_path_as_sent():
    scope = _scope("/btc-exchange-rate/")
    scope["raw_path"] = b"/btc%2Dexchange-rate/"

    assert derive_cache_key(scope) == "/btc%2Dexchange-rate/"
    assert derive_cache_key(scope) != derive_cache_key(_scope("/btc-exchange-rate/"))


def test_query_in_raw_path_is_not_duplicated():
    scope = _scope("/x", b"a=1")
    scope["raw_path"] = b"/x?a=1"

    assert derive_cache_key(scope) == "/x?a=1"


def test_empty_raw_path_falls_back_to_path():
    scope = _scope("/x")
    scope["raw_path"] = b""

    assert derive_cache_key(scope) == "/x"
