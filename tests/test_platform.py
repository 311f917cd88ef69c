"""Tests for the Platform entry point."""

import pytest

from conftest import FakeTransport
from streamone_sdk import (
    ApplicationAuthenticationRequiredError,
    Config,
    ConfigurationError,
    HttpTransport,
    Platform,
)


class TestPlatform:
    """Wiring of config and transport."""

    def test_options_dictionary(self) -> None:
        """Option dictionaries go through Config.from_options."""
        with Platform({"authentication_type": "user", "user_id": "u", "user_psk": "p"}) as platform:
            assert isinstance(platform.config, Config)
            assert isinstance(platform.config.transport, HttpTransport)

    def test_invalid_options(self) -> None:
        with pytest.raises(ConfigurationError):
            Platform({"authentication_type": "robot"})

    def test_explicit_transport(self, user_config) -> None:
        """A transport argument overrides the configured one."""
        transport = FakeTransport()
        platform = Platform(user_config, transport=transport)

        assert platform.config.transport is transport

    def test_request(self, user_config, transport: FakeTransport) -> None:
        """Requests made by the platform go through its transport."""
        transport.respond("/api/item/view", body={"id": "x"})
        platform = Platform(user_config)

        request = platform.new_request("item", "view").execute()

        assert request.success
        assert transport.calls_to("/api/item/view")

    def test_new_actor(self, user_default_account_config) -> None:
        actor = Platform(user_default_account_config).new_actor()
        assert actor.account == "account"

    def test_new_session_requires_application(self, user_config) -> None:
        with pytest.raises(ApplicationAuthenticationRequiredError):
            Platform(user_config).new_session()

    def test_close_leaves_foreign_transport(self, user_config) -> None:
        """Only transports the platform created are closed."""
        transport = FakeTransport()
        transport.close = lambda: pytest.fail("closed a foreign transport")  # type: ignore[assignment]

        Platform(user_config, transport=transport).close()
