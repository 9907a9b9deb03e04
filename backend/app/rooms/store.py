"""Key-value persistence backends for room snapshots."""

from __future__ import annotations

import logging
import threading
import time
from typing import Protocol

import redis

from app.core.config import Settings

logger = logging.getLogger(__name__)

ROOM_KEY_PREFIX = "room:"
ROOM_CODE_PREFIX = "roomkey:"


def room_storage_key(room_id: str) -> str:
    return f"{ROOM_KEY_PREFIX}{room_id}"


def room_code_storage_key(room_key: str) -> str:
    return f"{ROOM_CODE_PREFIX}{room_key}"


class PersistenceUnavailableError(Exception):
    """Raised when the durable store cannot serve a read or write."""


class RoomStore(Protocol):
    """Minimal KV contract consumed by the room manager."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    def delete(self, key: str) -> bool: ...

    def scan(self, prefix: str) -> list[str]: ...


class InMemoryRoomStore:
    """Process-local store with optional per-key expiry."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._lock = threading.Lock()

    def _expired(self, key: str) -> bool:
        expires_at = self._expires_at.get(key)
        return expires_at is not None and expires_at <= self._clock()

    def _purge(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires_at.pop(key, None)

    def get(self, key: str) -> str | None:
        with self._lock:
            if self._expired(key):
                self._purge(key)
                return None
            return self._values.get(key)

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        with self._lock:
            self._values[key] = value
            if ttl is None:
                self._expires_at.pop(key, None)
            else:
                self._expires_at[key] = self._clock() + ttl

    def delete(self, key: str) -> bool:
        with self._lock:
            existed = key in self._values and not self._expired(key)
            self._purge(key)
            return existed

    def scan(self, prefix: str) -> list[str]:
        with self._lock:
            for key in [key for key in self._values if self._expired(key)]:
                self._purge(key)
            return sorted(key for key in self._values if key.startswith(prefix))


class RedisRoomStore:
    """Redis-backed store; every client error becomes PersistenceUnavailableError."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisRoomStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            raise PersistenceUnavailableError(f"redis get failed for {key}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            if ttl is None:
                self._client.set(key, value)
            else:
                self._client.setex(key, ttl, value)
        except redis.RedisError as exc:
            raise PersistenceUnavailableError(f"redis set failed for {key}") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self._client.delete(key))
        except redis.RedisError as exc:
            raise PersistenceUnavailableError(f"redis delete failed for {key}") from exc

    def scan(self, prefix: str) -> list[str]:
        try:
            keys = self._client.scan_iter(match=f"{prefix}*")
            return sorted(key.decode("utf-8") if isinstance(key, bytes) else key for key in keys)
        except redis.RedisError as exc:
            raise PersistenceUnavailableError(f"redis scan failed for {prefix}") from exc


def build_store(settings: Settings) -> RoomStore:
    """Pick the configured backend once at startup."""
    if settings.c4_storage_backend == "redis":
        logger.info("Using redis room store")
        return RedisRoomStore.from_url(settings.c4_redis_url)
    logger.info("Using in-memory room store")
    return InMemoryRoomStore()


__all__ = [
    "InMemoryRoomStore",
    "PersistenceUnavailableError",
    "RedisRoomStore",
    "RoomStore",
    "build_store",
    "room_code_storage_key",
    "room_storage_key",
]
