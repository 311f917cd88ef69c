"""
StreamOne API Contracts

Pydantic v2 models for the parts of the API responses the SDK interprets.
Everything else in a response body is passed through untouched.
"""

from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
    model_validator,
)


class ResponseHeader(BaseModel):
    """
    Header of an API response.

    Only status and statusmessage decide validity. The optional flags are
    read leniently: cacheable counts when present and truthy, and a
    sessiontimeout that is not an integer is ignored.
    """

    status: StrictInt
    status_message: StrictStr = Field(..., alias="statusmessage")
    cacheable: bool = False
    session_timeout: Optional[int] = Field(None, alias="sessiontimeout")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("cacheable", mode="before")
    @classmethod
    def truthy_cacheable(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("session_timeout", mode="before")
    @classmethod
    def integer_session_timeout(cls, value: Any) -> Optional[int]:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None


class ResponseEnvelope(BaseModel):
    """
    A structurally valid API response.

    Both keys must be present; body may be anything, including null.
    """

    header: ResponseHeader
    body: Any

    model_config = ConfigDict(extra="allow")


def _scope_id(value: Any) -> Optional[str]:
    """Scopes arrive either as {"id": ...} objects or as bare ids."""
    if value is None:
        return None
    if isinstance(value, dict):
        scope = value.get("id")
        return None if scope is None else str(scope)
    return str(value)


class Role(BaseModel):
    """
    One entry of a getmyroles response.

    A role without customer and account is global; a role with a customer is
    scoped to that customer; a role with an account is scoped to that account.
    """

    customer: Optional[str] = None
    account: Optional[str] = None
    tokens: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def flatten_entry(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        tokens = data.get("tokens")
        role = data.get("role")
        if isinstance(role, dict) and "tokens" in role:
            tokens = role["tokens"]

        return {
            "customer": _scope_id(data.get("customer")),
            "account": _scope_id(data.get("account")),
            "tokens": tokens or [],
        }

    @property
    def is_global(self) -> bool:
        return self.customer is None and self.account is None

    def is_super_role_of(self, customer: Optional[str], account: Optional[str]) -> bool:
        """
        Whether this role covers the given (customer, account) pair.

        Global roles cover everything; an account-scoped role covers only that
        account; a customer-scoped role covers only that customer.
        """
        if self.is_global:
            return True

        if self.account is not None:
            return account is not None and account == self.account

        return customer is not None and customer == self.customer


ROLE_LIST = TypeAdapter(List[Role])
TOKEN_LIST = TypeAdapter(List[str])


class SessionInitializeBody(BaseModel):
    """Body of a successful session/initialize response."""

    needs_v2_hash: bool = Field(
        False, validation_alias=AliasChoices("needsv2hash", "needsV2hash", "needsV2Hash")
    )
    salt: StrictStr
    challenge: StrictStr


class SessionCreateBody(BaseModel):
    """Body of a successful session/create response."""

    id: StrictStr
    key: StrictStr
    user: StrictStr
    timeout: int
