"""Per-record mutual exclusion for transitions. SETNX pattern, TTL, safe release. Redis or in-process backend."""

import threading
import time
import uuid
from typing import Protocol


class LockBackend(Protocol):
    """Minimal key-value operations for the lock. Injected; no global state."""

    async def set_nx_ex(self, key: str, value: str, ttl: int) -> bool: ...
    async def get(self, key: str) -> str | None: ...
    async def delete_if_value(self, key: str, value: str) -> bool: ...


LOCK_PREFIX = "lock:"


class InProcessLockBackend:
    """Single-node backend with the same semantics as the Redis one (TTL expiry included)."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._store: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> str | None:
        item = self._store.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at <= time.monotonic():
            del self._store[key]
            return None
        return value

    async def set_nx_ex(self, key: str, value: str, ttl: int) -> bool:
        with self._mutex:
            if self._live(key) is not None:
                return False
            self._store[key] = (value, time.monotonic() + ttl)
            return True

    async def get(self, key: str) -> str | None:
        with self._mutex:
            return self._live(key)

    async def delete_if_value(self, key: str, value: str) -> bool:
        with self._mutex:
            if self._live(key) == value:
                del self._store[key]
                return True
            return False


class DistributedLock:
    """
    Lock keyed by record, using SET NX EX semantics. Safe in a concurrent async environment.
    Each acquire uses a unique token so only the holder can release.
    """

    def __init__(self, backend: LockBackend, key_prefix: str = LOCK_PREFIX) -> None:
        self._backend = backend
        self._prefix = key_prefix
        self._tokens: dict[str, str] = {}

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def acquire(self, key: str, ttl: int) -> bool:
        """
        Try to acquire the lock. Returns True if acquired, False if already held.
        TTL enforced; lock auto-expires to avoid deadlock.
        """
        full_key = self._key(key)
        token = str(uuid.uuid4())
        acquired = await self._backend.set_nx_ex(full_key, token, ttl)
        if acquired:
            self._tokens[key] = token
        return acquired

    async def release(self, key: str) -> None:
        """Release the lock only if we hold it (atomic compare-and-delete)."""
        full_key = self._key(key)
        token = self._tokens.pop(key, None)
        if token is not None:
            await self._backend.delete_if_value(full_key, token)
