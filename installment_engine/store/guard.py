"""Short-lived exclusion of installments whose payment was just cleared."""

from __future__ import annotations

import threading
import time
from typing import Callable


class RecentlyClearedGuard:
    """Per-id TTL map consulted by the status sweep.

    When a payment is cleared the installment goes back to PENDING. A sweep
    running right after could flag it LATE before the caller has observed
    the cleared state, so the id is excluded from derivation for ``ttl``
    seconds. Entries expire lazily on access.

    Parameters
    ----------
    ttl : float
        Seconds an id stays excluded (default 5.0).
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl: float = 5.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._expires: dict[str, float] = {}
        self._lock = threading.Lock()

    def add(self, installment_id: str) -> None:
        """Exclude ``installment_id`` for the next ``ttl`` seconds."""
        with self._lock:
            self._expires[installment_id] = self._clock() + self.ttl

    def discard(self, installment_id: str) -> None:
        with self._lock:
            self._expires.pop(installment_id, None)

    def active(self) -> frozenset[str]:
        """Ids still inside their window."""
        with self._lock:
            self._purge()
            return frozenset(self._expires)

    def __contains__(self, installment_id: object) -> bool:
        with self._lock:
            self._purge()
            return installment_id in self._expires

    def __len__(self) -> int:
        with self._lock:
            self._purge()
            return len(self._expires)

    def _purge(self) -> None:
        now = self._clock()
        expired = [iid for iid, deadline in self._expires.items() if deadline <= now]
        for iid in expired:
            del self._expires[iid]
