"""Per-key locking for ledger mutations."""

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLocks:
    """
    Registry of one lock per key.

    Used to serialize append-then-merge on the same (ticker, account) pair
    while leaving unrelated keys free to proceed concurrently.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._registry_lock:
            lock = self._locks[key]
        with lock:
            yield
