"""
Challenge/response password hashing for session creation.

The password never leaves the client: session/initialize hands out a salt and
a one-time challenge, and session/create receives a response derived from
both.
"""

import base64
import hashlib


def _md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def _sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def generate_password_response(password: str, salt: str, challenge: str) -> str:
    """
    Compute the response to a session challenge.

    The salted password hash is combined with a hash over itself and the
    challenge, so the response is only valid for this challenge.

    The derivation of the stored hash, sha256(salt + md5(password)), is a
    reconstruction of the server's scheme and has not been checked against
    the live API. Verify a login before relying on it.

    Returns:
        Base64 of the bytewise XOR of the salted hash and the challenge hash
    """
    salted = _sha256_hex(salt + _md5_hex(password))
    sha_hash = _sha256_hex(salted)
    final_hash = _sha256_hex(sha_hash + challenge)

    mixed = bytes(a ^ b for a, b in zip(sha_hash.encode("ascii"), final_hash.encode("ascii")))
    return base64.b64encode(mixed).decode("ascii")


def generate_v2_password_hash(password: str) -> str:
    """Legacy password hash, sent along when the API asks for it."""
    return _sha256_hex(_md5_hex(password))
