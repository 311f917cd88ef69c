"""
SDK configuration.

A Config is an immutable value passed to every component that needs it.
There is no process-wide configuration.
"""

from enum import Enum
from typing import Any, Callable, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic import ValidationError as PydanticValidationError

from .cache import CacheProvider, NoopCache, create_cache
from .errors import ConfigurationError
from .session_store import MemorySessionStore, SessionStore, session_store_factory

DEFAULT_API_URL = "http://api.streamonecloud.net"
DEFAULT_VISIBLE_ERRORS = frozenset({2, 3, 4, 5, 7})

KNOWN_OPTIONS = frozenset(
    {
        "api_url",
        "authentication_type",
        "user_id",
        "user_psk",
        "application_id",
        "application_psk",
        "default_account_id",
        "visible_errors",
        "cache",
        "session_store",
        "transport",
    }
)


class AuthenticationType(str, Enum):
    """How requests are authenticated."""

    USER = "user"
    APPLICATION = "application"


class Config(BaseModel):
    """
    Settings shared by requests, sessions and actors.

    Exactly one authentication mode is active at a time. The pre-shared key
    is a SecretStr so it never shows up in reprs or logs.
    """

    api_url: str = DEFAULT_API_URL
    authentication_type: Optional[AuthenticationType] = None
    actor_id: str = ""
    actor_psk: SecretStr = SecretStr("")
    default_account_id: Optional[str] = None
    visible_errors: FrozenSet[int] = DEFAULT_VISIBLE_ERRORS
    # CacheProvider / SessionStore factory / Transport; duck-typed capabilities
    cache: Any = Field(default_factory=NoopCache)
    session_store_factory: Callable[[], Any] = MemorySessionStore
    transport: Optional[Any] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "Config":
        """
        Build a Config from an option dictionary.

        Recognised options: api_url, authentication_type ('user' or
        'application'), user_id + user_psk or application_id +
        application_psk, default_account_id, visible_errors, cache,
        session_store, transport.

        cache may be a cache instance, a registered tag ('noop', 'memory',
        'file') or a (tag, kwargs) pair; session_store may be a factory
        callable, a tag ('memory', 'file') or a (tag, kwargs) pair.

        Raises:
            ConfigurationError: Unknown option, unknown authentication type,
                missing credentials, or an invalid cache/session store
        """
        unknown = set(options) - KNOWN_OPTIONS
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration options: {', '.join(sorted(unknown))}",
                details={"options": sorted(unknown)},
            )

        values: dict = {}
        for key in ("api_url", "default_account_id", "transport"):
            if key in options:
                values[key] = options[key]

        if "visible_errors" in options:
            values["visible_errors"] = frozenset(options["visible_errors"])

        if "cache" in options:
            values["cache"] = _resolve_cache(options["cache"])

        if "session_store" in options:
            values["session_store_factory"] = _resolve_session_store(options["session_store"])

        if "authentication_type" in options:
            values.update(_resolve_authentication(options))

        try:
            return cls(**values)
        except PydanticValidationError as e:
            # Messages only; error inputs may contain the pre-shared key
            problems = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(problems)}",
                details={"errors": problems},
            ) from None

    @property
    def actor_key(self) -> str:
        """The pre-shared key in plain text, for signing."""
        return self.actor_psk.get_secret_value()

    def validate_for_requests(self) -> bool:
        """True iff an authentication mode with non-empty id and key is configured."""
        return (
            self.authentication_type is not None
            and len(self.actor_id) > 0
            and len(self.actor_key) > 0
        )

    def has_default_account_id(self) -> bool:
        return self.default_account_id is not None

    def is_visible_error(self, status: int) -> bool:
        return status in self.visible_errors

    def new_session_store(self) -> SessionStore:
        return self.session_store_factory()

    def with_transport(self, transport: Any) -> "Config":
        """Copy of this config that dispatches through transport."""
        return self.model_copy(update={"transport": transport})


def _resolve_authentication(options: Mapping[str, Any]) -> dict:
    auth_type = options["authentication_type"]

    if auth_type == AuthenticationType.USER.value:
        if "user_id" not in options or "user_psk" not in options:
            raise ConfigurationError("Missing user_id or user_psk")
        return {
            "authentication_type": AuthenticationType.USER,
            "actor_id": options["user_id"],
            "actor_psk": options["user_psk"],
        }

    if auth_type == AuthenticationType.APPLICATION.value:
        if "application_id" not in options or "application_psk" not in options:
            raise ConfigurationError("Missing application_id or application_psk")
        return {
            "authentication_type": AuthenticationType.APPLICATION,
            "actor_id": options["application_id"],
            "actor_psk": options["application_psk"],
        }

    raise ConfigurationError(
        f"Unknown authentication type '{auth_type}'",
        details={"authenticationType": auth_type},
    )


def _resolve_cache(value: Any) -> CacheProvider:
    if isinstance(value, str):
        return create_cache(value)

    if isinstance(value, (tuple, list)) and len(value) == 2 and isinstance(value[0], str):
        tag, kwargs = value
        return create_cache(tag, **dict(kwargs))

    if all(callable(getattr(value, name, None)) for name in ("get", "age", "set")):
        return value

    raise ConfigurationError(
        "cache must be a cache instance, a cache type name or a (name, arguments) pair",
        details={"cache": repr(value)},
    )


def _resolve_session_store(value: Any) -> Callable[[], SessionStore]:
    if isinstance(value, str):
        return session_store_factory(value)

    if isinstance(value, (tuple, list)) and len(value) == 2 and isinstance(value[0], str):
        tag, kwargs = value
        return session_store_factory(tag, **dict(kwargs))

    if callable(value):
        return value

    raise ConfigurationError(
        "session_store must be a factory, a session store type name or a (name, arguments) pair",
        details={"sessionStore": repr(value)},
    )
