"""
Canonical form encoding for StreamOne API requests

The API verifies signatures over the exact query string it receives, and the
server side encodes with PHP's http_build_query(). This module reproduces that
encoding so that the string we sign and the string we send are identical.

Guarantees:
- Insertion order of keys is preserved (no sorting)
- None values are skipped entirely
- Booleans are written as 1 / 0
- Lists and dicts expand to key[index]=value / key[sub]=value, recursively
- Form-urlencoding: space becomes "+", everything except A-Z a-z 0-9 - _ .
  is percent-encoded (including "~")
"""

from typing import Any, Iterator, List, Mapping, Tuple
from urllib.parse import parse_qsl, quote_plus


def build_query(data: Mapping[str, Any]) -> str:
    """
    Encodes a mapping as an application/x-www-form-urlencoded string.

    Args:
        data: Parameters or arguments, in the order they must appear

    Returns:
        The encoded query string (without leading "?")
    """
    pairs = [
        _encode(key) + "=" + _encode(value)
        for key, value in _flatten_mapping(data, prefix=None)
    ]
    return "&".join(pairs)


def signing_payload(
    path: str, parameters: Mapping[str, Any], arguments: Mapping[str, Any]
) -> str:
    """
    Builds the exact string a request signature is computed over.

    The order is fixed: path, "?", parameters, "&", arguments. The "&" is
    present even when there are no arguments.
    """
    return path + "?" + build_query(parameters) + "&" + build_query(arguments)


def cache_key(
    path: str, parameters: Mapping[str, Any], arguments: Mapping[str, Any]
) -> str:
    """Deterministic key for caching the response of a request."""
    return path + "?" + build_query(parameters) + "#" + build_query(arguments)


def _flatten_mapping(data: Mapping[str, Any], prefix: Any) -> Iterator[Tuple[str, str]]:
    for key, value in data.items():
        name = str(key) if prefix is None else f"{prefix}[{key}]"
        yield from _flatten_value(name, value)


def _flatten_value(name: str, value: Any) -> Iterator[Tuple[str, str]]:
    if value is None:
        return

    if isinstance(value, bool):
        yield name, "1" if value else "0"
        return

    if isinstance(value, Mapping):
        yield from _flatten_mapping(value, prefix=name)
        return

    if isinstance(value, (list, tuple)):
        yield from _flatten_mapping(dict(enumerate(value)), prefix=name)
        return

    yield name, _scalar_to_string(value)


def _scalar_to_string(value: Any) -> str:
    if isinstance(value, (int, float, str)):
        return str(value)

    raise TypeError(f"Unsupported type for query encoding: {type(value)}")


def _encode(text: str) -> str:
    # quote_plus leaves "~" alone, PHP urlencode() does not
    return quote_plus(text, safe="").replace("~", "%7E")


def parse_pairs(query: str) -> List[Tuple[str, str]]:
    """
    Splits an encoded query string back into decoded (key, value) pairs.

    Mostly useful for inspecting what was sent; keys keep their bracket suffixes.
    """
    return parse_qsl(query, keep_blank_values=True)
