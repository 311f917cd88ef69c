"""
Actors.

An actor is whoever performs a request: the configured user or application,
or the user of a session. Besides that, an actor may be scoped to one or
more accounts, or to a customer, but never both.
"""

from typing import List, Optional

from .authorization import ActorAuthorizer
from .cache import CacheProvider, SessionStoreCache
from .config import Config
from .contracts import Role
from .request import Request
from .session import Session


class Actor:
    """
    An actor corresponding to a user (with or without session) or application.

    Args:
        config: Configuration to use for this actor
        session: Session to use; if None, the configured credentials are used

    The configured default account, if any, is the initial account scope.
    """

    def __init__(self, config: Config, session: Optional[Session] = None) -> None:
        self.config = config
        self.session = session
        self._customer: Optional[str] = None
        self._accounts: List[str] = []
        self._authorizer = ActorAuthorizer()

        if config.default_account_id is not None:
            self._accounts = [config.default_account_id]

    def set_account(self, account: Optional[str]) -> None:
        """Use a single account; None clears the account. Clears the customer."""
        self._accounts = [] if account is None else [account]
        self._customer = None

    def set_accounts(self, accounts: List[str]) -> None:
        """Use several accounts. Clears the customer."""
        self._accounts = list(accounts)
        self._customer = None

    def set_customer(self, customer: Optional[str]) -> None:
        """Use a customer; None clears the customer. Clears the account(s)."""
        self._customer = customer
        self._accounts = []

    @property
    def account(self) -> Optional[str]:
        return self._accounts[0] if self._accounts else None

    @property
    def accounts(self) -> List[str]:
        return list(self._accounts)

    @property
    def customer(self) -> Optional[str]:
        return self._customer

    @property
    def has_active_session(self) -> bool:
        return self.session is not None and self.session.is_active

    def new_request(self, command: str, action: str) -> Request:
        """
        Create a request to the API on behalf of this actor.

        With neither customer nor accounts set, the request is explicitly
        unscoped, overriding a default account from the configuration.
        """
        if self.has_active_session:
            request = self.session.new_request(command, action)
        else:
            request = Request(command, action, self.config)

        if self._customer is not None:
            request.set_customer(self._customer)
        elif self._accounts:
            request.set_accounts(self._accounts)
        else:
            request.set_account(None)

        return request

    @property
    def token_cache(self) -> CacheProvider:
        """Session-backed while a session is active, else the configured cache."""
        if self.has_active_session:
            return SessionStoreCache(self.session.store)
        return self.config.cache

    def roles(self) -> List[Role]:
        return self._authorizer.roles(self)

    def tokens(self) -> List[str]:
        return self._authorizer.tokens(self)

    def has_token(self, token: str) -> bool:
        """
        Check whether this actor holds a token in its current scoping.

        Raises:
            RequestFailedError: The lookup failed
        """
        return self._authorizer.has_token(self, token)
