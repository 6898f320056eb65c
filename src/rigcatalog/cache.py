from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional, Protocol, Tuple

from redis import Redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "rigcatalog:components"


class ComponentCache(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def close(self) -> None: ...


def cache_key(shape: str, *args: object, offset: int) -> str:
    parts = [KEY_PREFIX, shape, *(str(a) for a in args), "page", str(offset)]
    return ":".join(parts)


class NullCache:
    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def exists(self, key: str) -> bool:
        return False

    def close(self) -> None:
        return None


class MemoryCache:
    def __init__(self, max_entries: int = 10_000, cleanup_interval_seconds: float = 60.0):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()
        self.max_entries = max(1, max_entries)
        self.cleanup_interval_seconds = max(0.0, cleanup_interval_seconds)
        self._last_cleanup_monotonic = time.monotonic()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= time.monotonic():
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            now = time.monotonic()
            expires_at = now + ttl_seconds if ttl_seconds > 0 else float("inf")
            self._entries.pop(key, None)
            self._entries[key] = (value, expires_at)
            self._cleanup_expired(now)
            # 超出容量时淘汰最早写入的条目 - over capacity, evict the oldest writes first
            while len(self._entries) > self.max_entries:
                self._entries.pop(next(iter(self._entries)))

    def _cleanup_expired(self, now: float, force: bool = False) -> None:
        if not force and (now - self._last_cleanup_monotonic) < self.cleanup_interval_seconds:
            return
        stale = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for k in stale:
            self._entries.pop(k, None)
        self._last_cleanup_monotonic = now

    def cleanup(self) -> None:
        with self._lock:
            self._cleanup_expired(time.monotonic(), force=True)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def close(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCache:
    def __init__(self, client: Redis):
        self._client = client

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        password: Optional[str] = None,
        db: int = 0,
        timeout_seconds: float = 5.0,
    ) -> "RedisCache":
        client = Redis(
            host=host,
            port=port,
            password=password or None,
            db=db,
            decode_responses=True,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
        )
        # startup connectivity check for fail-fast behavior
        client.ping()
        logger.info("connected to Redis at %s:%s/%s", host, port, db)
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds > 0:
            self._client.set(key, value, ex=ttl_seconds)
        else:
            self._client.set(key, value)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def exists(self, key: str) -> bool:
        return self._client.exists(key) > 0

    def close(self) -> None:
        self._client.close()
