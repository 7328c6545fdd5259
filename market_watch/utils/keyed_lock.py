"""Per-key mutual exclusion.

Used to serialize read-modify-write sequences on a single pattern (keyed by
pattern id) or a single symbol's level catalog (keyed by symbol).
"""
import logging
import threading
from collections.abc import Iterator
from concurrent.futures import wait
from contextlib import contextmanager
from dataclasses import dataclass, field

from market_watch.core.exceptions import PersistenceTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class _KeyLock:
    lock: threading.RLock = field(default_factory=threading.RLock)
    holders: int = 0


class KeyedLockRegistry:
    """Registry handing out one lock per key.

    Entries are created under a manager lock when the first holder arrives
    and dropped when the last holder leaves, so the registry only tracks keys
    that are currently in use.

    If a collaborator call times out inside hold(), the key stays locked
    until the abandoned call settles. The next holder therefore never reads
    state that an in-flight write is about to change.

    Example:
        >>> locks = KeyedLockRegistry()
        >>> with locks.hold("AAPL"):
        ...     pass
    """

    def __init__(self) -> None:
        self._entries: dict[str, _KeyLock] = {}
        self._manager_lock = threading.Lock()

    def _acquire_entry(self, key: str) -> _KeyLock:
        with self._manager_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _KeyLock()
                self._entries[key] = entry
            entry.holders += 1
            return entry

    def _release_entry(self, key: str, entry: _KeyLock) -> None:
        with self._manager_lock:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for key for the duration of the with-block.

        Args:
            key: Serialization key (pattern id or symbol)

        Raises:
            PersistenceTimeoutError: Re-raised from the block once the
                timed-out call it carries has settled
        """
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                try:
                    yield
                except PersistenceTimeoutError as e:
                    if e.pending is not None and not e.pending.done():
                        logger.warning(f"Holding {key} until a timed-out call settles")
                        wait([e.pending])
                    raise
        finally:
            self._release_entry(key, entry)

    def __len__(self) -> int:
        with self._manager_lock:
            return len(self._entries)
