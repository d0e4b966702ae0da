"""Cart storage port and adapters.

``CartStore`` is the repository every cart operation goes through:
- ``InMemoryCartStore`` for development and tests (per-process, TTL expiry)
- ``RedisCartStore`` for deployments running more than one worker

Writes for the same user are last-write-wins.
"""

import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

import redis

from ordering.cart.cart import Cart
from ordering.settings import get_settings
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


class CartStore(ABC):
    @abstractmethod
    def get(self, user_id: str) -> Optional[Cart]:
        """Stored cart for the user, or ``None`` if absent or expired."""
        ...

    @abstractmethod
    def set(self, user_id: str, cart: Cart) -> None: ...

    @abstractmethod
    def delete(self, user_id: str) -> None: ...


class InMemoryCartStore(CartStore):
    """Per-process store with TTL expiry.

    Expired entries are dropped when read, and a sweep on write removes the
    ones nobody comes back for. The sweep runs at most once per
    ``sweep_interval`` seconds (defaults to the TTL, capped at a minute).
    """

    def __init__(self, ttl_seconds: int, clock=time.monotonic, sweep_interval: float | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self.sweep_interval = sweep_interval if sweep_interval is not None else min(ttl_seconds, 60)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, dict]] = {}
        self._next_sweep = self._clock() + self.sweep_interval

    def get(self, user_id: str) -> Optional[Cart]:
        with self._lock:
            entry = self._entries.get(str(user_id))
            if entry is None:
                return None
            expires_at, payload = entry
            if self._clock() >= expires_at:
                del self._entries[str(user_id)]
                return None
        return Cart.from_dict(payload)

    def set(self, user_id: str, cart: Cart) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._purge(now)
            self._entries[str(user_id)] = (now + self.ttl_seconds, cart.to_dict())

    def delete(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(str(user_id), None)

    def purge_expired(self) -> int:
        """Drop every expired entry now; returns how many were removed."""
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self.sweep_interval
        if expired:
            logger.debug("cart_store_swept", removed=len(expired), remaining=len(self._entries))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCartStore(CartStore):
    def __init__(self, client: redis.Redis, ttl_seconds: int, key_prefix: str = "localeats:cart:") -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int, key_prefix: str = "localeats:cart:") -> "RedisCartStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), ttl_seconds, key_prefix)

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def get(self, user_id: str) -> Optional[Cart]:
        raw = self.client.get(self._key(user_id))
        if raw is None:
            return None
        return Cart.from_dict(json.loads(raw))

    def set(self, user_id: str, cart: Cart) -> None:
        self.client.set(self._key(user_id), json.dumps(cart.to_dict()), ex=self.ttl_seconds)

    def delete(self, user_id: str) -> None:
        self.client.delete(self._key(user_id))


_current_store: CartStore | None = None


def get_cart_store() -> CartStore:
    """Return the configured cart store, built from settings on first use."""
    global _current_store
    if _current_store is None:
        settings = get_settings()
        if settings.cart_store_backend == "redis":
            _current_store = RedisCartStore.from_url(
                settings.redis_url, settings.cart_ttl_seconds, settings.redis_key_prefix
            )
        else:
            _current_store = InMemoryCartStore(ttl_seconds=settings.cart_ttl_seconds)
    return _current_store


def set_cart_store(store: CartStore) -> None:
    """Override the active cart store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_cart_store() -> None:
    global _current_store
    _current_store = None
