"""
StreamOne SDK Platform

Main entry point for talking to the StreamOne API.
"""

from typing import Any, Mapping, Optional, Union

from .actor import Actor
from .config import Config
from .http_transport import HttpTransport
from .request import Request
from .session import Session
from .session_store import SessionStore
from .transport import Transport


class Platform:
    """
    StreamOne Python SDK Platform

    Creates requests, sessions and actors that share one configuration and
    one transport.

    Example:
        ```python
        from streamone_sdk import Platform

        with Platform({
            "api_url": "https://api.streamonecloud.net",
            "authentication_type": "application",
            "application_id": "app-id",
            "application_psk": "app-psk",
        }) as platform:
            session = platform.new_session()
            if session.start("user", "password", "192.0.2.1"):
                actor = platform.new_actor(session)
                actor.set_account("account-1")

                if actor.has_token("item:view"):
                    request = actor.new_request("item", "view")
                    request.set_argument("item", "item-1").execute()
        ```
    """

    def __init__(
        self,
        config: Union[Config, Mapping[str, Any]],
        transport: Optional[Transport] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the platform.

        Args:
            config: A Config, or an option dictionary for Config.from_options()
            transport: Optional transport; overrides the configured one
            timeout: Request timeout in seconds for the default HTTP transport

        Raises:
            ConfigurationError: The options are invalid
        """
        if not isinstance(config, Config):
            config = Config.from_options(config)

        self._own_transport = False
        if transport is not None:
            config = config.with_transport(transport)
        elif config.transport is None:
            config = config.with_transport(HttpTransport(timeout=timeout))
            self._own_transport = True

        self.config = config

    def new_request(self, command: str, action: str) -> Request:
        """Create a request authenticated with the configured credentials."""
        return Request(command, action, self.config)

    def new_session(self, session_store: Optional[SessionStore] = None) -> Session:
        """
        Create a session manager.

        Raises:
            ApplicationAuthenticationRequiredError: Not using application authentication
        """
        return Session(self.config, session_store)

    def new_actor(self, session: Optional[Session] = None) -> Actor:
        """Create an actor, acting as the session user if a session is given."""
        return Actor(self.config, session)

    def close(self) -> None:
        """Close the transport if the platform created it."""
        if self._own_transport and hasattr(self.config.transport, "close"):
            self.config.transport.close()

    def __enter__(self) -> "Platform":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        self.close()
