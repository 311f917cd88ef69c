"""
StreamOne Python SDK

Client for the StreamOne platform API.

Features:
- Signed requests (HMAC-SHA1 over the canonical query string)
- User sessions on top of application authentication
- Actor scoping by account(s) or customer
- Role and token checks with cached lookups
- Pluggable transport, cache and session store

Example:
    ```python
    from streamone_sdk import Platform

    with Platform({
        "authentication_type": "user",
        "user_id": "user-id",
        "user_psk": "user-psk",
        "default_account_id": "account-1",
    }) as platform:
        request = platform.new_request("item", "view")
        request.set_argument("item", "item-1").execute()

        if request.success:
            print(request.body)
    ```
"""

from .actor import Actor
from .authorization import ActorAuthorizer, roles_cache_key, tokens_cache_key
from .cache import (
    CacheProvider,
    FileCache,
    MemoryCache,
    NoopCache,
    SessionStoreCache,
    create_cache,
)
from .canonicalize import build_query, signing_payload
from .config import AuthenticationType, Config
from .contracts import ResponseEnvelope, ResponseHeader, Role
from .errors import (
    ApplicationAuthenticationRequiredError,
    ConfigurationError,
    NetworkError,
    NoActiveSessionError,
    PreconditionError,
    RateLimitError,
    RequestAlreadyExecutedError,
    RequestFailedError,
    ServerError,
    SessionNotStartedError,
    StreamOneError,
    TransportError,
)
from .http_transport import HttpTransport
from .platform import Platform
from .request import Request, SessionBinding
from .retry import RetryPolicy
from .session import Session
from .session_store import (
    FileSessionStore,
    MemorySessionStore,
    SessionStore,
    session_store_factory,
)
from .signing import sign, sign_request
from .transport import BaseTransport, Transport

__version__ = "3.0.0"

__all__ = [
    # Platform
    "Platform",
    "Config",
    "AuthenticationType",
    # Requests
    "Request",
    "SessionBinding",
    "ResponseEnvelope",
    "ResponseHeader",
    # Sessions and actors
    "Session",
    "Actor",
    "ActorAuthorizer",
    "Role",
    "roles_cache_key",
    "tokens_cache_key",
    # Errors
    "StreamOneError",
    "ConfigurationError",
    "PreconditionError",
    "NoActiveSessionError",
    "ApplicationAuthenticationRequiredError",
    "RequestAlreadyExecutedError",
    "SessionNotStartedError",
    "RequestFailedError",
    "TransportError",
    "NetworkError",
    "ServerError",
    "RateLimitError",
    # Transport
    "Transport",
    "BaseTransport",
    "HttpTransport",
    "RetryPolicy",
    # Caches and session stores
    "CacheProvider",
    "NoopCache",
    "MemoryCache",
    "FileCache",
    "SessionStoreCache",
    "create_cache",
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "session_store_factory",
    # Signing
    "build_query",
    "signing_payload",
    "sign",
    "sign_request",
]
