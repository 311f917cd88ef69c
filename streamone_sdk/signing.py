"""
Request signing.

Signatures are HMAC-SHA1 over the canonical signing payload (see
canonicalize.signing_payload), hex encoded.
"""

import hashlib
import hmac
from typing import Any, Mapping

from .canonicalize import signing_payload


def sign(key: str, payload: str) -> str:
    """
    Computes the signature of a payload.

    Args:
        key: Signing key (pre-shared key, with the session key appended for sessions)
        payload: Canonical payload to sign

    Returns:
        Hex-encoded HMAC-SHA1 digest
    """
    return hmac.new(key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).hexdigest()


def sign_request(
    key: str,
    path: str,
    parameters: Mapping[str, Any],
    arguments: Mapping[str, Any],
) -> str:
    """Signs the given path, signing parameters and arguments with key."""
    return sign(key, signing_payload(path, parameters, arguments))
