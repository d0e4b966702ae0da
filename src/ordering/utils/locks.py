"""Named in-process locks.

Checkout holds one lock per discount across "count redemptions, charge,
increment counter", and one per restaurant and per user around counter
updates. Locks are re-entrant so nested sections on the same key are safe.

A key's lock lives only while some thread holds or waits on it, so the
registry stays as small as the number of checkouts in flight.
"""

import threading
from contextlib import ExitStack, contextmanager


class _KeyedLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


_registry_guard = threading.Lock()
_locks: dict[str, _KeyedLock] = {}


def registered_keys() -> list[str]:
    with _registry_guard:
        return sorted(_locks)


@contextmanager
def _held(key: str):
    with _registry_guard:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = _KeyedLock()
        entry.users += 1

    try:
        with entry.lock:
            yield
    finally:
        with _registry_guard:
            entry.users -= 1
            if entry.users == 0:
                del _locks[key]


@contextmanager
def serialized(*keys: str):
    """Hold the locks for every non-empty key, always acquired in sorted order."""
    with ExitStack() as stack:
        for key in sorted({k for k in keys if k}):
            stack.enter_context(_held(key))
        yield
