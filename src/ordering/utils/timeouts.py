"""Bounded calls to external collaborators."""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="collaborator")


class CallTimedOut(Exception):
    pass


def call_with_timeout(fn, timeout: float, *args, **kwargs):
    """Run ``fn`` on the collaborator pool and wait at most ``timeout`` seconds.

    The worker is abandoned, not killed, when the budget is exceeded.
    """
    future = _executor.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout as exc:
        future.cancel()
        raise CallTimedOut(f"{getattr(fn, '__qualname__', fn)} exceeded {timeout}s") from exc
