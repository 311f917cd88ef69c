"""
Token (permission) checks for actors.

Roles and tokens are fetched from the API on first use and cached in the
actor's token cache. Whether an actor holds a token depends on how it is
scoped:

- with accounts, and at least one role scoped to a customer: the API is
  asked for the tokens valid in exactly this scoping (api/mytokens), since
  the client cannot tell which customer an account belongs to;
- without accounts: some role covering the actor's customer (or the global
  scope) must carry the token;
- otherwise: every account must be covered by some role carrying the token.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .cache import CacheProvider
from .config import AuthenticationType
from .contracts import ROLE_LIST, TOKEN_LIST, Role
from .errors import RequestFailedError

if TYPE_CHECKING:
    from .actor import Actor

logger = logging.getLogger(__name__)


def roles_cache_key(actor_type: str, actor_id: str) -> str:
    return "roles:" + actor_type + ":" + actor_id


def tokens_cache_key(
    actor_type: str, actor_id: str, customer: Optional[str], accounts: List[str]
) -> str:
    return (
        "tokens:" + actor_type + ":" + actor_id + ":" + (customer or "") + ":"
        + "|".join(sorted(accounts))
    )


class ActorAuthorizer:
    """Resolves roles and tokens of actors and answers token checks."""

    def actor_type(self, actor: "Actor") -> str:
        """'user' for session actors and user authentication, else 'application'."""
        if actor.has_active_session or actor.config.authentication_type is AuthenticationType.USER:
            return AuthenticationType.USER.value
        return AuthenticationType.APPLICATION.value

    def actor_id(self, actor: "Actor") -> str:
        """The user of the session if there is one, else the configured actor."""
        if actor.has_active_session:
            return actor.session.user_id
        return actor.config.actor_id

    def roles(self, actor: "Actor") -> List[Role]:
        """
        All roles of the actor, over every scope.

        Raises:
            RequestFailedError: The roles could not be fetched
        """
        actor_type = self.actor_type(actor)
        return self._cached(
            actor.token_cache,
            roles_cache_key(actor_type, self.actor_id(actor)),
            ROLE_LIST,
            "roles",
            lambda: self._fetch(actor, actor_type, "getmyroles", scoped=False),
        )

    def tokens(self, actor: "Actor") -> List[str]:
        """
        Tokens the actor holds in its current scoping.

        Raises:
            RequestFailedError: The tokens could not be fetched
        """
        return self._cached(
            actor.token_cache,
            tokens_cache_key(
                self.actor_type(actor), self.actor_id(actor), actor.customer, actor.accounts
            ),
            TOKEN_LIST,
            "tokens",
            lambda: self._fetch(actor, "api", "mytokens", scoped=True),
        )

    def has_token(self, actor: "Actor", token: str) -> bool:
        """
        Whether the actor holds token in its current scoping.

        Raises:
            RequestFailedError: Roles or tokens could not be fetched; a failed
                lookup is never reported as a missing token
        """
        roles = self.roles(actor)
        accounts = actor.accounts
        customer = actor.customer

        if accounts and any(role.customer is not None for role in roles):
            return token in self.tokens(actor)

        if not accounts:
            return any(
                role.is_super_role_of(customer, None) and token in role.tokens
                for role in roles
            )

        return all(
            any(
                role.is_super_role_of(customer, account) and token in role.tokens
                for role in roles
            )
            for account in accounts
        )

    def _cached(
        self,
        cache: CacheProvider,
        key: str,
        adapter: TypeAdapter,
        kind: str,
        fetch: Callable[[], Any],
    ) -> Any:
        """Parsed value from the cache, or fetched, parsed and then cached."""
        value = cache.get(key)
        if value is not None:
            try:
                parsed = adapter.validate_python(value)
            except PydanticValidationError:
                logger.warning(f"Ignoring unusable cached {kind}")
            else:
                logger.debug(f"Using cached {kind}")
                return parsed

        value = fetch()
        try:
            parsed = adapter.validate_python(value)
        except PydanticValidationError as e:
            raise RequestFailedError(
                0, f"invalid {kind} response", details={"cacheKey": key}
            ) from e

        cache.set(key, value)
        return parsed

    def _fetch(self, actor: "Actor", command: str, action: str, scoped: bool) -> Any:
        request = actor.new_request(command, action)
        if not scoped:
            request.set_account(None)
        request.execute()
        request.raise_for_status()
        return request.body
