"""
Tag-based constructor registries.

Caches and session stores can be chosen by name in option dictionaries. A
Registry maps each name to a constructor and checks, at configuration time,
that the given arguments actually fit that constructor.
"""

import functools
import inspect
from typing import Any, Callable, Dict, Generic, List, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")


class Registry(Generic[T]):
    """Maps tags to constructors of one capability kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._constructors: Dict[str, Callable[..., T]] = {}

    def register(self, tag: str, constructor: Callable[..., T]) -> None:
        self._constructors[tag] = constructor

    def tags(self) -> List[str]:
        return sorted(self._constructors)

    def factory(self, tag: str, **kwargs: Any) -> Callable[[], T]:
        """
        Validate tag and arguments and return a zero-argument constructor.

        Raises:
            ConfigurationError: Unknown tag or arguments that do not bind
        """
        try:
            constructor = self._constructors[tag]
        except KeyError:
            raise ConfigurationError(
                f"Unknown {self.kind} type '{tag}'",
                details={"tag": tag, "known": self.tags()},
            ) from None

        try:
            inspect.signature(constructor).bind(**kwargs)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid arguments for {self.kind} '{tag}': {e}",
                details={"tag": tag, "arguments": sorted(kwargs)},
            ) from e

        return functools.partial(constructor, **kwargs)

    def create(self, tag: str, **kwargs: Any) -> T:
        """Validate and construct in one go."""
        return self.factory(tag, **kwargs)()
