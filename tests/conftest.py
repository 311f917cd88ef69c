"""Shared fixtures: configurations and a recording fake transport."""

import json
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Mapping, Optional

import pytest

from streamone_sdk import BaseTransport, Config, MemorySessionStore


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport(BaseTransport):
    """Returns queued responses per path and records every call.

    Queued exceptions are raised instead of returned.
    """

    def __init__(self) -> None:
        self.responses: Dict[str, Deque[Any]] = defaultdict(deque)
        self.calls: List[Dict[str, Any]] = []

    def respond(
        self,
        path: str,
        body: Any = None,
        status: int = 0,
        message: str = "OK",
        **header: Any,
    ) -> None:
        envelope = {"header": {"status": status, "statusmessage": message, **header}, "body": body}
        self.responses[path].append(json.dumps(envelope))

    def respond_raw(self, path: str, raw: Any) -> None:
        """Queue a raw value (str, Exception to raise, or anything else)."""
        self.responses[path].append(raw)

    def send(
        self,
        base_url: str,
        path: str,
        parameters: Mapping[str, Any],
        arguments: Mapping[str, Any],
    ) -> Any:
        self.calls.append(
            {
                "base_url": base_url,
                "path": path,
                "parameters": dict(parameters),
                "arguments": dict(arguments),
            }
        )
        queue = self.responses[path]
        if not queue:
            raise AssertionError(f"Unexpected request to {path}")

        # The last queued response keeps answering
        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def calls_to(self, path: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["path"] == path]

    def last_call(self, path: Optional[str] = None) -> Dict[str, Any]:
        calls = self.calls if path is None else self.calls_to(path)
        return calls[-1]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_config(transport: FakeTransport) -> Config:
    return Config.from_options(
        {
            "api_url": "api",
            "authentication_type": "user",
            "user_id": "user",
            "user_psk": "psk",
            "transport": transport,
        }
    )


@pytest.fixture
def user_default_account_config(transport: FakeTransport) -> Config:
    return Config.from_options(
        {
            "api_url": "api",
            "authentication_type": "user",
            "user_id": "application",
            "user_psk": "apppsk",
            "default_account_id": "account",
            "transport": transport,
        }
    )


@pytest.fixture
def application_config(transport: FakeTransport) -> Config:
    return Config.from_options(
        {
            "api_url": "api",
            "authentication_type": "application",
            "application_id": "user",
            "application_psk": "psk",
            "transport": transport,
        }
    )


@pytest.fixture
def application_default_account_config(transport: FakeTransport) -> Config:
    return Config.from_options(
        {
            "api_url": "api",
            "authentication_type": "application",
            "application_id": "application",
            "application_psk": "apppsk",
            "default_account_id": "account",
            "transport": transport,
        }
    )


@pytest.fixture
def configs(
    user_config: Config,
    user_default_account_config: Config,
    application_config: Config,
    application_default_account_config: Config,
) -> Dict[str, Config]:
    return {
        "user": user_config,
        "user_default_account": user_default_account_config,
        "application": application_config,
        "application_default_account": application_default_account_config,
    }


@pytest.fixture
def active_store() -> MemorySessionStore:
    """A store holding the session 'session' / 'key' for user 'user'."""
    store = MemorySessionStore()
    store.set_session("session", "key", "user", 100)
    return store
