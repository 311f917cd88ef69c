"""
Transport abstraction.

Protocol for putting a signed request on the wire.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Protocol


class Transport(Protocol):
    """
    Protocol for StreamOne API communication.

    Implementations perform an HTTP(S) POST to base_url + path with the
    parameters as query string and the arguments as form-encoded body.
    """

    def send(
        self,
        base_url: str,
        path: str,
        parameters: Mapping[str, Any],
        arguments: Mapping[str, Any],
    ) -> str:
        """
        Send a request to the API.

        Args:
            base_url: API base address
            path: Request path, /api/<command>/<action>
            parameters: Signed query parameters
            arguments: Form arguments

        Returns:
            The raw response text

        Raises:
            NetworkError: Connection/timeout issues
            ServerError: 5xx server errors
            RateLimitError: 429 responses
        """
        ...


class BaseTransport(ABC):
    """
    Abstract base class for transport implementations.
    """

    @abstractmethod
    def send(
        self,
        base_url: str,
        path: str,
        parameters: Mapping[str, Any],
        arguments: Mapping[str, Any],
    ) -> str:
        """Send a request and return the raw response text."""
        pass

    def close(self) -> None:
        """
        Close any resources (HTTP connections, etc.).

        Optional - override if needed.
        """
        pass

    def __enter__(self) -> "BaseTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        self.close()
