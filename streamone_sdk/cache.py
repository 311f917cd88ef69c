"""
Cache providers.

A cache maps string keys to JSON-compatible values and can report how old an
entry is. A miss is reported as None. No eviction contract is assumed by the
rest of the SDK; NoopCache, which never hits, is a valid choice.
"""

import hashlib
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union

from .registry import Registry
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class CacheProvider(Protocol):
    """Capability interface for caches."""

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss."""
        ...

    def age(self, key: str) -> Optional[float]:
        """Age of the entry in seconds, or None on a miss."""
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class NoopCache:
    """Caches nothing."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def age(self, key: str) -> Optional[float]:
        return None

    def set(self, key: str, value: Any) -> None:
        pass


class MemoryCache:
    """
    Process-local cache.

    Args:
        expiration: Seconds after which an entry is dropped; None keeps entries forever
    """

    def __init__(self, expiration: Optional[float] = None, clock: Callable[[], float] = time.time) -> None:
        self.expiration = expiration
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def _entry(self, key: str) -> Optional[Tuple[float, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.expiration is not None and entry[0] + self.expiration < self._clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self._entry(key)
        return None if entry is None else entry[1]

    def age(self, key: str) -> Optional[float]:
        entry = self._entry(key)
        return None if entry is None else self._clock() - entry[0]

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)


class FileCache:
    """
    Caches values as JSON files in a directory, one file per key.

    Files are named after the SHA-1 of the key; the directory is created with
    mode 0700. Entries older than expiration seconds are removed on read.
    """

    def __init__(self, basedir: Union[str, Path] = "/tmp/s1_cache", expiration: float = 300) -> None:
        self.basedir = Path(basedir)
        self.expiration = expiration
        self.basedir.mkdir(mode=0o700, parents=True, exist_ok=True)

    def _filename(self, key: str) -> Path:
        return self.basedir / hashlib.sha1(key.encode("utf-8")).hexdigest()

    def _mtime(self, filename: Path) -> Optional[float]:
        try:
            mtime = filename.stat().st_mtime
        except FileNotFoundError:
            return None

        if mtime + self.expiration < time.time():
            filename.unlink(missing_ok=True)
            return None
        return mtime

    def get(self, key: str) -> Optional[Any]:
        filename = self._filename(key)
        if self._mtime(filename) is None:
            return None

        try:
            return json.loads(filename.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Dropping unreadable cache file {filename.name}: {e}")
            filename.unlink(missing_ok=True)
            return None

    def age(self, key: str) -> Optional[float]:
        mtime = self._mtime(self._filename(key))
        return None if mtime is None else time.time() - mtime

    def set(self, key: str, value: Any) -> None:
        filename = self._filename(key)
        try:
            fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(value, handle)
        except OSError as e:
            # A cache that cannot write behaves like a miss next time
            logger.warning(f"Could not write cache file {filename.name}: {e}")


class SessionStoreCache:
    """
    Cache backed by the key/value area of a session store.

    Entries disappear together with the session they were stored in.
    """

    def __init__(self, store: SessionStore, clock: Callable[[], float] = time.time) -> None:
        self.store = store
        self._clock = clock

    def _entry(self, key: str) -> Optional[Dict[str, Any]]:
        if not self.store.has_cache_key(key):
            return None
        entry = self.store.get_cache_key(key)
        if not isinstance(entry, dict) or "stored_at" not in entry:
            return None
        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self._entry(key)
        return None if entry is None else entry.get("value")

    def age(self, key: str) -> Optional[float]:
        entry = self._entry(key)
        return None if entry is None else self._clock() - entry["stored_at"]

    def set(self, key: str, value: Any) -> None:
        self.store.set_cache_key(key, {"value": value, "stored_at": self._clock()})


CACHES: Registry[CacheProvider] = Registry("cache")
CACHES.register("noop", NoopCache)
CACHES.register("memory", MemoryCache)
CACHES.register("file", FileCache)


def create_cache(tag: str, **kwargs: Any) -> CacheProvider:
    """Construct the cache named tag, validating its arguments first."""
    return CACHES.create(tag, **kwargs)
