"""Bounded calls into collaborators.

Persistence collaborators may block on disk or network. Calls are run on a
shared worker pool and abandoned after a timeout so a single slow write cannot
stall a batch. An abandoned call keeps running; the raised error carries its
future so KeyedLockRegistry.hold can keep the key locked until it lands.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, TypeVar

from market_watch.core.exceptions import PersistenceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="market-watch-io")


def call_with_timeout(func: Callable[..., T], *args, timeout: float | None, **kwargs) -> T:
    """Run func(*args, **kwargs) and wait at most timeout seconds.

    Exceptions raised by func propagate unchanged.

    Args:
        func: Collaborator callable
        timeout: Seconds to wait; None runs func inline without a bound

    Returns:
        Whatever func returns

    Raises:
        PersistenceTimeoutError: If func did not finish in time. The call is
            not cancelled; its future is attached as ``pending``.
    """
    if timeout is None:
        return func(*args, **kwargs)

    future = _executor.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        name = getattr(func, "__qualname__", repr(func))
        logger.error(f"Collaborator call {name} timed out after {timeout}s")
        raise PersistenceTimeoutError(
            f"{name} timed out after {timeout}s", pending=future
        ) from None
