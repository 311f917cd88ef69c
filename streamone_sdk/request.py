"""
API requests.

A Request is built for one command/action pair, scoped to at most one of
account, accounts or customer, signed at execution time, sent through the
configured transport and then inspected.

Example:
    ```python
    request = Request("item", "view", config)
    request.set_account("account-1").set_argument("item", "item-1")
    request.execute()

    if request.success:
        print(request.body)
    else:
        print(request.status, request.status_message)
    ```
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .canonicalize import cache_key
from .config import AuthenticationType, Config
from .contracts import ResponseEnvelope, ResponseHeader
from .errors import (
    ApplicationAuthenticationRequiredError,
    ConfigurationError,
    NoActiveSessionError,
    RequestAlreadyExecutedError,
    RequestFailedError,
    TransportError,
)
from .session_store import SessionStore
from .signing import sign_request

logger = logging.getLogger(__name__)

API_VERSION = 3
RESPONSE_FORMAT = "json"
INVALID_RESPONSE_MESSAGE = "invalid response"


@dataclass(frozen=True)
class SessionBinding:
    """
    Ties a request to the session held in a store.

    The id and key are read from the store when the request is signed, so a
    session that expired in between is noticed.
    """

    store: SessionStore

    @property
    def session_id(self) -> str:
        if not self.store.has_session():
            raise NoActiveSessionError()
        return self.store.get_id()

    @property
    def session_key(self) -> str:
        if not self.store.has_session():
            raise NoActiveSessionError()
        return self.store.get_key()


class Request:
    """
    One call to the API.

    Args:
        command: API command, e.g. "item"
        action: Action on the command, e.g. "view"
        config: Configuration to authenticate and dispatch with
        session_store: Store of an active session to sign with; requires
            application authentication
        clock: Source of the signing timestamp

    Raises:
        ConfigurationError: The config cannot be used for requests
        ApplicationAuthenticationRequiredError: Session requested without
            application authentication
        NoActiveSessionError: Session requested but the store holds none
    """

    def __init__(
        self,
        command: str,
        action: str,
        config: Config,
        session_store: Optional[SessionStore] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not config.validate_for_requests():
            raise ConfigurationError(
                "Configuration is not suitable for performing requests: "
                "an authentication type with actor id and key is required"
            )

        self.session: Optional[SessionBinding] = None
        if session_store is not None:
            if config.authentication_type is not AuthenticationType.APPLICATION:
                raise ApplicationAuthenticationRequiredError(config.authentication_type.value)
            if not session_store.has_session():
                raise NoActiveSessionError()
            self.session = SessionBinding(session_store)

        self.command = command
        self.action = action
        self.config = config
        self._clock = clock

        auth_type = config.authentication_type.value
        self._parameters: Dict[str, Any] = {
            "api": API_VERSION,
            "format": RESPONSE_FORMAT,
            "authentication_type": auth_type,
            auth_type: config.actor_id,
        }
        if config.default_account_id is not None:
            self._parameters["account"] = config.default_account_id

        self._arguments: Dict[str, Any] = {}

        self._executed = False
        self._plain_response: Optional[str] = None
        self._response: Optional[ResponseEnvelope] = None
        self.from_cache = False
        self.cache_age: Optional[float] = None
        self.transport_error: Optional[TransportError] = None

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        return f"/api/{self.command}/{self.action}"

    @property
    def parameters(self) -> Dict[str, Any]:
        """Request parameters, without timestamp, session and signature."""
        return dict(self._parameters)

    @property
    def arguments(self) -> Dict[str, Any]:
        return dict(self._arguments)

    def set_account(self, account: Optional[str]) -> "Request":
        """
        Scope the request to a single account; None removes all scoping.

        Clears any customer or accounts, including a default account from the
        configuration.
        """
        self._parameters.pop("customer", None)
        if account is None:
            self._parameters.pop("account", None)
        else:
            self._parameters["account"] = account
        return self

    def set_accounts(self, accounts: List[str]) -> "Request":
        """
        Scope the request to several accounts; clears any customer.

        A single account is sent as a plain account parameter, several as
        account[0], account[1], ...
        """
        self._parameters.pop("customer", None)
        if len(accounts) > 1:
            self._parameters["account"] = list(accounts)
        elif accounts:
            self._parameters["account"] = accounts[0]
        else:
            self._parameters.pop("account", None)
        return self

    def set_customer(self, customer: Optional[str]) -> "Request":
        """Scope the request to a customer; clears any account(s)."""
        self._parameters.pop("account", None)
        if customer is None:
            self._parameters.pop("customer", None)
        else:
            self._parameters["customer"] = customer
        return self

    @property
    def account(self) -> Optional[str]:
        """The (first) account this request is scoped to."""
        accounts = self.accounts
        return accounts[0] if accounts else None

    @property
    def accounts(self) -> List[str]:
        value = self._parameters.get("account")
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    @property
    def customer(self) -> Optional[str]:
        return self._parameters.get("customer")

    def set_argument(self, name: str, value: Any) -> "Request":
        """Set a POST argument; None is sent as an empty string."""
        self._arguments[name] = "" if value is None else value
        return self

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def signing_key(self) -> str:
        """Pre-shared key, with the session key appended for session requests."""
        key = self.config.actor_key
        if self.session is not None:
            key += self.session.session_key
        return key

    def signing_parameters(self, timestamp: Optional[int] = None) -> Dict[str, Any]:
        """Parameters the signature covers: request parameters, timestamp and session."""
        parameters = dict(self._parameters)
        parameters["timestamp"] = int(self._clock()) if timestamp is None else timestamp
        if self.session is not None:
            parameters["session"] = self.session.session_id
        return parameters

    def signed_parameters(self, timestamp: Optional[int] = None) -> Dict[str, Any]:
        """Signing parameters plus their signature, ready to be sent."""
        parameters = self.signing_parameters(timestamp)
        parameters["signature"] = sign_request(
            self.signing_key(), self.path, parameters, self._arguments
        )
        return parameters

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self) -> "Request":
        """
        Execute the request, using a cached response when one is available.

        Never raises for transport or protocol failures; inspect valid,
        success, status and status_message afterwards.

        Raises:
            RequestAlreadyExecutedError: execute() was already called
            NoActiveSessionError: The bound session ended before signing
            ConfigurationError: No transport configured
        """
        if self._executed:
            raise RequestAlreadyExecutedError(self.path)
        self._executed = True

        cached = self._retrieve_cache()
        if cached is None:
            self._send()
        else:
            self._handle_response(cached)

        self._save_cache()
        self._renew_session()
        return self

    def _send(self) -> None:
        transport = self.config.transport
        if transport is None:
            raise ConfigurationError("No transport configured for executing requests")

        parameters = self.signed_parameters()
        logger.debug(f"Executing {self.path}")
        try:
            response = transport.send(self.config.api_url, self.path, parameters, self._arguments)
        except TransportError as e:
            logger.warning(f"Request {self.path} failed: {e.message}")
            self.transport_error = e
            response = None

        self._handle_response(response)

    def _handle_response(self, response: Any) -> None:
        if not isinstance(response, str):
            return

        self._plain_response = response
        try:
            data = json.loads(response)
        except ValueError:
            data = None

        try:
            self._response = ResponseEnvelope.model_validate(data)
        except PydanticValidationError:
            self._response = None

        if self.valid and self.config.is_visible_error(self.status):
            logger.error(f"StreamOne API error {self.status} on {self.path}: {self.status_message}")

    def _renew_session(self) -> None:
        if self.session is None or not self.success:
            return

        timeout = self.header.session_timeout
        if timeout is not None:
            self.session.store.set_timeout(timeout)

    # ------------------------------------------------------------------
    # Caching
    # ------------------------------------------------------------------

    def _cache_key(self) -> str:
        parameters = dict(self._parameters)
        if self.session is not None:
            parameters["session"] = self.session.session_id
        return cache_key(self.path, parameters, self._arguments)

    @property
    def cacheable(self) -> bool:
        return self.success and self.header.cacheable

    def _retrieve_cache(self) -> Optional[str]:
        key = self._cache_key()
        response = self.config.cache.get(key)
        if response is None:
            return None

        logger.debug(f"Cache hit for {self.path}")
        self.from_cache = True
        self.cache_age = self.config.cache.age(key)
        return response

    def _save_cache(self) -> None:
        if self.cacheable and not self.from_cache:
            self.config.cache.set(self._cache_key(), self._plain_response)

    # ------------------------------------------------------------------
    # Response inspection
    # ------------------------------------------------------------------

    @property
    def executed(self) -> bool:
        return self._executed

    @property
    def valid(self) -> bool:
        """True if the response has a header with integer status, string message, and a body."""
        return self._response is not None

    @property
    def success(self) -> bool:
        return self.valid and self._response.header.status == 0

    @property
    def header(self) -> Optional[ResponseHeader]:
        return self._response.header if self.valid else None

    @property
    def body(self) -> Any:
        return self._response.body if self.valid else None

    @property
    def plain_response(self) -> Optional[str]:
        return self._plain_response

    @property
    def status(self) -> int:
        """Response status; 0 when the response is invalid."""
        return self._response.header.status if self.valid else 0

    @property
    def status_message(self) -> str:
        if not self.valid:
            return INVALID_RESPONSE_MESSAGE
        return self._response.header.status_message

    def raise_for_status(self) -> "Request":
        """
        Raise RequestFailedError unless the request succeeded.

        Invalid responses are reported with status 0 and "invalid response".
        """
        if not self.success:
            details: Dict[str, Any] = {"path": self.path}
            if self.transport_error is not None:
                details["transportError"] = self.transport_error.message
            raise RequestFailedError(self.status, self.status_message, details=details)
        return self
