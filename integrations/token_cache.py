# integrations/token_cache.py

"""
======================================================
PATH: integrations/token_cache.py
======================================================
SESSION TOKEN CACHES

Collaborator clients receive their cache; nothing is kept in module state.
A cache is an optimization only: a miss or an invalidated token simply
means a new login.

- InMemoryTokenCache : per-process, lock-protected, injectable clock
- DjangoTokenCache   : Django's cache framework (shared between workers
                       when CACHES points at redis/memcached)
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Protocol

from django.core.cache import caches


def utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


class TokenCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, token: str, expires_at: datetime) -> None: ...

    def invalidate(self, key: str) -> None: ...


class InMemoryTokenCache:
    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens: dict[str, tuple[str, datetime]] = {}

    def get(self, key: str) -> str | None:
        with self._lock:
            hit = self._tokens.get(key)
            if hit is None:
                return None
            token, expires_at = hit
            if expires_at <= self._clock():
                del self._tokens[key]
                return None
            return token

    def set(self, key: str, token: str, expires_at: datetime) -> None:
        with self._lock:
            self._tokens[key] = (token, expires_at)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._tokens.pop(key, None)


class DjangoTokenCache:
    def __init__(self, alias: str = "default", prefix: str = "integrations:token:", clock=utc_now):
        self._cache = caches[alias]
        self._prefix = prefix
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        return self._cache.get(self._key(key))

    def set(self, key: str, token: str, expires_at: datetime) -> None:
        timeout = int((expires_at - self._clock()).total_seconds())
        if timeout <= 0:
            self.invalidate(key)
            return
        self._cache.set(self._key(key), token, timeout=timeout)

    def invalidate(self, key: str) -> None:
        self._cache.delete(self._key(key))
