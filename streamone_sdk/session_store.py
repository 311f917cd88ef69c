"""
Session stores.

A session store keeps the id, key, user and expiry of the active session,
plus a small key/value area that lives and dies with the session. Expiry is
enforced lazily: has_session() clears an expired session when it notices it.

Stores are not thread-safe; use one store per logical actor context.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Union

from .registry import Registry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class SessionStore(Protocol):
    """Capability interface for session persistence."""

    def has_session(self) -> bool:
        """True if a complete, unexpired session is stored; clears expired ones."""
        ...

    def clear_session(self) -> None:
        ...

    def set_session(self, id: str, key: str, user_id: str, timeout: float) -> None:
        """Store a session that expires timeout seconds from now."""
        ...

    def set_timeout(self, timeout: float) -> None:
        """Move the expiry to timeout seconds from now; ignored without a session."""
        ...

    def get_id(self) -> Optional[str]:
        ...

    def get_key(self) -> Optional[str]:
        ...

    def get_user_id(self) -> Optional[str]:
        ...

    def get_timeout(self) -> Optional[float]:
        """Seconds remaining until expiry; None if there is no session."""
        ...

    def has_cache_key(self, key: str) -> bool:
        ...

    def get_cache_key(self, key: str) -> Any:
        ...

    def set_cache_key(self, key: str, value: Any) -> None:
        ...

    def unset_cache_key(self, key: str) -> None:
        ...


class MemorySessionStore:
    """
    Keeps the session in memory for the lifetime of this object.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._id: Optional[str] = None
        self._key: Optional[str] = None
        self._user_id: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._cache: Dict[str, Any] = {}

    def has_session(self) -> bool:
        if None in (self._id, self._key, self._user_id, self._expires_at):
            return False

        if self._expires_at < self._clock():
            logger.debug("Stored session expired; clearing it")
            self.clear_session()
            return False

        return True

    def clear_session(self) -> None:
        self._id = None
        self._key = None
        self._user_id = None
        self._expires_at = None
        self._cache = {}

    def set_session(self, id: str, key: str, user_id: str, timeout: float) -> None:
        self._id = id
        self._key = key
        self._user_id = user_id
        self._expires_at = self._clock() + timeout

    def set_timeout(self, timeout: float) -> None:
        if self.has_session():
            self._expires_at = self._clock() + timeout

    def get_id(self) -> Optional[str]:
        return self._id

    def get_key(self) -> Optional[str]:
        return self._key

    def get_user_id(self) -> Optional[str]:
        return self._user_id

    def get_timeout(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return self._expires_at - self._clock()

    def has_cache_key(self, key: str) -> bool:
        return key in self._cache

    def get_cache_key(self, key: str) -> Any:
        return self._cache[key]

    def set_cache_key(self, key: str, value: Any) -> None:
        self._cache[key] = value

    def unset_cache_key(self, key: str) -> None:
        self._cache.pop(key, None)


class FileSessionStore:
    """
    Persists the session as a JSON document, so it survives the process.

    The file is created with mode 0600; a missing or unreadable file means no
    session.
    """

    def __init__(self, path: Union[str, Path], clock: Clock = time.time) -> None:
        self.path = Path(path)
        self._clock = clock

    def _load(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle)

    def has_session(self) -> bool:
        data = self._load()
        complete = (
            isinstance(data.get("id"), str)
            and isinstance(data.get("key"), str)
            and isinstance(data.get("user"), str)
            and isinstance(data.get("timeout"), (int, float))
        )
        if not complete:
            return False

        if data["timeout"] >= self._clock():
            return True

        logger.debug("Stored session expired; clearing it")
        self.clear_session()
        return False

    def clear_session(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def set_session(self, id: str, key: str, user_id: str, timeout: float) -> None:
        self._save(
            {
                "id": id,
                "key": key,
                "user": user_id,
                "timeout": self._clock() + timeout,
                "cache": {},
            }
        )

    def set_timeout(self, timeout: float) -> None:
        if not self.has_session():
            return

        data = self._load()
        data["timeout"] = self._clock() + timeout
        self._save(data)

    def get_id(self) -> Optional[str]:
        return self._load().get("id")

    def get_key(self) -> Optional[str]:
        return self._load().get("key")

    def get_user_id(self) -> Optional[str]:
        return self._load().get("user")

    def get_timeout(self) -> Optional[float]:
        timeout = self._load().get("timeout")
        if timeout is None:
            return None
        return timeout - self._clock()

    def has_cache_key(self, key: str) -> bool:
        return key in self._load().get("cache", {})

    def get_cache_key(self, key: str) -> Any:
        return self._load().get("cache", {})[key]

    def set_cache_key(self, key: str, value: Any) -> None:
        data = self._load()
        data.setdefault("cache", {})[key] = value
        self._save(data)

    def unset_cache_key(self, key: str) -> None:
        data = self._load()
        if key in data.get("cache", {}):
            del data["cache"][key]
            self._save(data)


SESSION_STORES: Registry[SessionStore] = Registry("session store")
SESSION_STORES.register("memory", MemorySessionStore)
SESSION_STORES.register("file", FileSessionStore)


def session_store_factory(tag: str, **kwargs: Any) -> Callable[[], SessionStore]:
    """Validated zero-argument constructor for the session store named tag."""
    return SESSION_STORES.factory(tag, **kwargs)
