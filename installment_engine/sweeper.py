"""Periodic background status sweep."""

from __future__ import annotations

import logging
import threading

from installment_engine.models.billing import Installment
from installment_engine.store.facade import InstallmentStore

logger = logging.getLogger(__name__)


class StatusSweeper:
    """Run :meth:`InstallmentStore.sweep` on a daemon thread.

    A failing sweep is logged and the loop waits for the next tick.

    Parameters
    ----------
    store : InstallmentStore
        Store whose open installments are refreshed.
    interval_seconds : float
        Pause between sweeps (default one hour).
    """

    def __init__(self, store: InstallmentStore, interval_seconds: float = 3600.0) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.store = store
        self.interval_seconds = interval_seconds
        self.runs = 0
        self.failures = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> list[Installment]:
        """Sweep now on the calling thread."""
        changed = self.store.sweep()
        self.runs += 1
        return changed

    def start(self) -> None:
        """Start the background loop. The first sweep runs immediately."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="status-sweeper", daemon=True)
        self._thread.start()
        logger.info("Status sweeper started (every %.0fs)", self.interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to end and wait for the running sweep to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Status sweeper stopped after %d runs (%d failed)", self.runs, self.failures)

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                self.failures += 1
                logger.exception("Status sweep failed")
            self._stop.wait(self.interval_seconds)
