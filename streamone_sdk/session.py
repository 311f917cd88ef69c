"""
User sessions on top of application authentication.

A session is created with a two-step challenge/response handshake
(session/initialize, session/create) signed with the application key. While
it is active, requests are signed with the application key followed by the
session key, and every successful request slides the session expiry.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from .config import AuthenticationType, Config
from .contracts import SessionCreateBody, SessionInitializeBody
from .errors import (
    ApplicationAuthenticationRequiredError,
    NoActiveSessionError,
    SessionNotStartedError,
)
from .password import generate_password_response, generate_v2_password_hash
from .request import Request
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class Session:
    """
    Manages the lifecycle of one user session.

    Args:
        config: Configuration; must use application authentication
        session_store: Where the session lives; defaults to a new store from
            the configuration's session store factory

    Raises:
        ApplicationAuthenticationRequiredError: config is not in application mode
    """

    def __init__(self, config: Config, session_store: Optional[SessionStore] = None) -> None:
        if config.authentication_type is not AuthenticationType.APPLICATION:
            auth_type = config.authentication_type.value if config.authentication_type else None
            raise ApplicationAuthenticationRequiredError(auth_type)

        self.config = config
        self.store = session_store if session_store is not None else config.new_session_store()
        self._start_request: Optional[Request] = None

    @property
    def is_active(self) -> bool:
        return self.store.has_session()

    def start(
        self,
        username: str,
        password: str,
        client_address: str,
        account: Optional[str] = None,
        customer: Optional[str] = None,
    ) -> bool:
        """
        Start a new session for a user.

        Args:
            username: Name of the user to log in
            password: The user's password; only a challenge response is sent
            client_address: IP address of the end user
            account: Optional account to scope the handshake to
            customer: Optional customer to scope the handshake to

        Returns:
            True if the session was created and stored. On False, inspect
            start_status and start_status_message.
        """
        request = self._new_start_request("initialize", account, customer)
        request.set_argument("user", username)
        request.set_argument("userip", client_address)
        request.execute()
        self._start_request = request

        if not request.success:
            logger.info(f"Session initialize for {username} failed: {request.status_message}")
            return False

        try:
            challenge = SessionInitializeBody.model_validate(request.body)
        except PydanticValidationError:
            logger.warning("Session initialize returned an unusable body")
            return False

        request = self._new_start_request("create", account, customer)
        request.set_argument("challenge", challenge.challenge)
        request.set_argument(
            "response",
            generate_password_response(password, challenge.salt, challenge.challenge),
        )
        if challenge.needs_v2_hash:
            request.set_argument("v2hash", generate_v2_password_hash(password))
        request.execute()
        self._start_request = request

        if not request.success:
            logger.info(f"Session create for {username} failed: {request.status_message}")
            return False

        try:
            created = SessionCreateBody.model_validate(request.body)
        except PydanticValidationError:
            logger.warning("Session create returned an unusable body")
            return False

        self.store.set_session(created.id, created.key, created.user, created.timeout)
        logger.info(f"Session started for user {created.user}")
        return True

    def _new_start_request(
        self, action: str, account: Optional[str], customer: Optional[str]
    ) -> Request:
        request = Request("session", action, self.config)
        if customer is not None:
            request.set_customer(customer)
        elif account is not None:
            request.set_account(account)
        return request

    @property
    def start_status(self) -> Optional[int]:
        """Status of the last handshake request; None if its response was invalid."""
        if self._start_request is None:
            raise SessionNotStartedError()
        if not self._start_request.valid:
            return None
        return self._start_request.status

    @property
    def start_status_message(self) -> Optional[str]:
        if self._start_request is None:
            raise SessionNotStartedError()
        if not self._start_request.valid:
            return None
        return self._start_request.status_message

    def end(self) -> bool:
        """
        End the session.

        The session is deleted on the API side if it is still active; the
        store is cleared whatever the outcome.

        Returns:
            True if the API confirmed the deletion
        """
        if not self.is_active:
            self.store.clear_session()
            return False

        try:
            request = self.new_request("session", "delete")
            request.execute()
        finally:
            self.store.clear_session()

        if not request.success:
            logger.warning(f"Session delete failed: {request.status_message}")
        else:
            logger.info("Session ended")
        return request.success

    def new_request(self, command: str, action: str) -> Request:
        """
        Create a request signed with this session.

        Raises:
            NoActiveSessionError: There is no active session
        """
        if not self.is_active:
            raise NoActiveSessionError()
        return Request(command, action, self.config, session_store=self.store)

    @property
    def user_id(self) -> str:
        """ID of the user logged in with this session."""
        if not self.is_active:
            raise NoActiveSessionError()
        return self.store.get_user_id()
