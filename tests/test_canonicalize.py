"""Tests for the canonical form encoding."""

import pytest

from streamone_sdk.canonicalize import build_query, cache_key, parse_pairs, signing_payload


class TestOrdering:
    """Insertion order is kept; the server signs what it receives."""

    def test_insertion_order_preserved(self):
        assert build_query({"z": "3", "a": "1", "m": "2"}) == "z=3&a=1&m=2"

    def test_empty_mapping(self):
        assert build_query({}) == ""


class TestScalars:
    """Scalar formatting."""

    def test_integer(self):
        assert build_query({"api": 3}) == "api=3"

    def test_booleans(self):
        assert build_query({"yes": True, "no": False}) == "yes=1&no=0"

    def test_none_is_skipped(self):
        assert build_query({"account": None, "format": "json"}) == "format=json"

    def test_empty_string_is_kept(self):
        assert build_query({"item": ""}) == "item="

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError, match="Unsupported type"):
            build_query({"x": object()})


class TestEscaping:
    """Form-urlencoding as done by PHP's urlencode()."""

    def test_space_is_plus(self):
        assert build_query({"q": "a b"}) == "q=a+b"

    def test_reserved_characters(self):
        assert build_query({"q": "a&b=c/d"}) == "q=a%26b%3Dc%2Fd"

    def test_tilde_is_encoded(self):
        assert build_query({"q": "~user"}) == "q=%7Euser"

    def test_unreserved_characters_kept(self):
        assert build_query({"q": "A-z_0.9"}) == "q=A-z_0.9"

    def test_unicode_is_utf8_percent_encoded(self):
        assert build_query({"q": "é"}) == "q=%C3%A9"


class TestNesting:
    """Lists and dicts expand to bracketed keys."""

    def test_list(self):
        assert build_query({"account": ["a", "b"]}) == "account%5B0%5D=a&account%5B1%5D=b"

    def test_dict(self):
        assert build_query({"meta": {"k": "v"}}) == "meta%5Bk%5D=v"

    def test_nested_list_in_dict(self):
        assert build_query({"m": {"l": ["x"]}}) == "m%5Bl%5D%5B0%5D=x"

    def test_empty_list_produces_nothing(self):
        assert build_query({"account": [], "format": "json"}) == "format=json"

    def test_parse_pairs_decodes_brackets(self):
        assert parse_pairs(build_query({"account": ["a", "b"]})) == [
            ("account[0]", "a"),
            ("account[1]", "b"),
        ]


class TestPayloads:
    """Signing payload and cache key composition."""

    def test_signing_payload_order(self):
        payload = signing_payload("/api/item/view", {"api": 3, "format": "json"}, {"item": "x"})
        assert payload == "/api/item/view?api=3&format=json&item=x"

    def test_signing_payload_keeps_separator_without_arguments(self):
        assert signing_payload("/api/a/b", {"api": 3}, {}) == "/api/a/b?api=3&"

    def test_cache_key(self):
        assert cache_key("/api/a/b", {"api": 3}, {"x": "1"}) == "/api/a/b?api=3#x=1"
