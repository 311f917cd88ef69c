"""Tests for the httpx-based transport."""

from unittest.mock import MagicMock

import httpx
import pytest

from streamone_sdk import HttpTransport, NetworkError, RateLimitError, RetryPolicy, ServerError


def _response(status_code: int, text: str = "", headers=None) -> httpx.Response:
    return httpx.Response(
        status_code,
        text=text,
        headers=headers,
        request=httpx.Request("POST", "http://api.test/api/item/view"),
    )


@pytest.fixture
def http_client() -> MagicMock:
    return MagicMock(spec=httpx.Client)


class TestSend:
    """Request encoding."""

    def test_posts_query_and_body(self, http_client) -> None:
        """Parameters go in the query string, arguments in the form body."""
        http_client.post.return_value = _response(200, '{"header": {}}')
        transport = HttpTransport(http_client=http_client)

        text = transport.send(
            "http://api.test/",
            "/api/item/view",
            {"api": 3, "account": ["a", "b"]},
            {"item": "x y"},
        )

        assert text == '{"header": {}}'
        http_client.post.assert_called_once_with(
            "http://api.test/api/item/view?api=3&account%5B0%5D=a&account%5B1%5D=b",
            content="item=x+y",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def test_api_errors_pass_through(self, http_client) -> None:
        """4xx other than 429 are returned for the caller to interpret."""
        http_client.post.return_value = _response(403, "forbidden")
        transport = HttpTransport(http_client=http_client)

        assert transport.send("http://api.test", "/api/a/b", {}, {}) == "forbidden"


class TestErrorMapping:
    """Transport failures become TransportError subclasses."""

    def test_timeout(self, http_client) -> None:
        http_client.post.side_effect = httpx.ReadTimeout("timed out")
        transport = HttpTransport(http_client=http_client)

        with pytest.raises(NetworkError, match="Request timeout"):
            transport.send("http://api.test", "/api/a/b", {}, {})

    def test_connect_error(self, http_client) -> None:
        http_client.post.side_effect = httpx.ConnectError("refused")
        transport = HttpTransport(http_client=http_client)

        with pytest.raises(NetworkError, match="Connection error"):
            transport.send("http://api.test", "/api/a/b", {}, {})

    def test_server_error(self, http_client) -> None:
        http_client.post.return_value = _response(502, "bad gateway")
        transport = HttpTransport(http_client=http_client)

        with pytest.raises(ServerError) as exc_info:
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert exc_info.value.details["statusCode"] == 502

    def test_rate_limit(self, http_client) -> None:
        http_client.post.return_value = _response(429, headers={"Retry-After": "30"})
        transport = HttpTransport(http_client=http_client)

        with pytest.raises(RateLimitError) as exc_info:
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert exc_info.value.details["retryAfter"] == 30

    def test_no_retry_by_default(self, http_client) -> None:
        """One attempt only unless a retry policy is given."""
        http_client.post.side_effect = httpx.ConnectError("refused")
        transport = HttpTransport(http_client=http_client)

        with pytest.raises(NetworkError):
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert http_client.post.call_count == 1


class TestRetries:
    """Opt-in retries."""

    @pytest.fixture
    def fast_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=3, min_wait_seconds=0, max_wait_seconds=0, multiplier=0)

    def test_transient_failure_retried(self, http_client, fast_policy) -> None:
        http_client.post.side_effect = [httpx.ConnectError("refused"), _response(200, "ok")]
        transport = HttpTransport(http_client=http_client, retry_policy=fast_policy)

        assert transport.send("http://api.test", "/api/a/b", {}, {}) == "ok"
        assert http_client.post.call_count == 2

    def test_gives_up_after_max_attempts(self, http_client, fast_policy) -> None:
        http_client.post.return_value = _response(503, "unavailable")
        transport = HttpTransport(http_client=http_client, retry_policy=fast_policy)

        with pytest.raises(ServerError):
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert http_client.post.call_count == 3


class TestLifecycle:
    """Client ownership."""

    def test_borrowed_client_not_closed(self, http_client) -> None:
        with HttpTransport(http_client=http_client):
            pass
        http_client.close.assert_not_called()

    def test_own_client_closed(self) -> None:
        transport = HttpTransport()
        transport.close()
        assert transport._http_client.is_closed


class TestRetryPolicies:
    """The named policies, driven through the transport."""

    def test_default_policy_backs_off(self, http_client) -> None:
        """default() makes three attempts with growing waits."""
        sleeps = []
        policy = RetryPolicy.default()
        policy.sleep = sleeps.append
        http_client.post.side_effect = httpx.ConnectError("refused")
        transport = HttpTransport(http_client=http_client, retry_policy=policy)

        with pytest.raises(NetworkError):
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert http_client.post.call_count == 3
        assert sleeps == [2.0, 4.0]

    def test_default_policy_honours_retry_after(self, http_client) -> None:
        """A rate-limited attempt waits as long as the server asks."""
        sleeps = []
        policy = RetryPolicy.default()
        policy.sleep = sleeps.append
        http_client.post.side_effect = [
            _response(429, headers={"Retry-After": "3"}),
            _response(200, "ok"),
        ]
        transport = HttpTransport(http_client=http_client, retry_policy=policy)

        assert transport.send("http://api.test", "/api/a/b", {}, {}) == "ok"
        assert sleeps == [3.0]

    def test_retry_after_capped(self, http_client) -> None:
        """Retry-After never exceeds the longest wait."""
        sleeps = []
        policy = RetryPolicy(max_attempts=2, max_wait_seconds=5, sleep=sleeps.append)
        http_client.post.side_effect = [
            _response(429, headers={"Retry-After": "600"}),
            _response(200, "ok"),
        ]
        transport = HttpTransport(http_client=http_client, retry_policy=policy)

        transport.send("http://api.test", "/api/a/b", {}, {})
        assert sleeps == [5.0]

    def test_no_retry_policy_never_sleeps(self, http_client) -> None:
        sleeps = []
        policy = RetryPolicy.no_retry()
        policy.sleep = sleeps.append
        http_client.post.return_value = _response(500, "boom")
        transport = HttpTransport(http_client=http_client, retry_policy=policy)

        with pytest.raises(ServerError):
            transport.send("http://api.test", "/api/a/b", {}, {})
        assert sleeps == []
