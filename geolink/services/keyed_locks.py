# SPDX-License-Identifier: Apache-2.0

"""
Per-key lock table shared by the in-memory stores.

Each account reference gets its own ``threading.Lock``, created on first use.
The table's guard lock is only held while a lock is being looked up or
created, never while a caller works under a key lock, so operations on
unrelated accounts never wait on each other.
"""

import threading
from typing import Dict


class KeyedLocks:
    """Lazily created mutual-exclusion locks keyed by account reference."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        """Return the lock for ``key``, creating it if needed."""
        lock = self._locks.get(key)
        if lock is None:
            with self._guard:
                lock = self._locks.setdefault(key, threading.Lock())
        return lock

    def __len__(self) -> int:
        return len(self._locks)
