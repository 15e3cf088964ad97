"""Observer main loop.

Each cycle fetches one pulse, runs the collectors over it and stores the
result in one transaction. The fetch cursor moves only after a batch is
stored. A batch that failed to store is kept and stored again on the next
cycle instead of being fetched and collected a second time, because the
collectors have already consumed its records.
"""

from __future__ import annotations

import threading

from core.errors import ObserverFetchError, ObserverStoreError
from core.logging_config import get_logger
from ledger.fetcher import Fetcher
from pipeline.batch import Batch, RawBatch
from pipeline.beautifier import Beautifier
from store.storer import Storer

_LOGGER = get_logger(__name__)


class Manager:
    """Drives fetch, collect and store cycles until asked to stop."""

    def __init__(
        self,
        fetcher: Fetcher,
        beautifier: Beautifier,
        storer: Storer,
        request_delay: float,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._beautifier = beautifier
        self._storer = storer
        self._request_delay = request_delay
        self._stop_event = stop_event or threading.Event()
        self._unstored: tuple[RawBatch, Batch] | None = None

    def run(self, once: bool = False) -> None:
        """Run cycles until stopped.

        Args:
            once: Run a single cycle and return.
        """
        _LOGGER.info("manager_started", cursor_pulse=self._fetcher.cursor.pulse)
        while not self._stop_event.is_set():
            self.run_cycle()
            if once:
                break
            self._stop_event.wait(self._request_delay)
        _LOGGER.info("manager_stopped", cursor_pulse=self._fetcher.cursor.pulse)

    def stop(self) -> None:
        """Ask the loop to stop after the current cycle."""
        self._stop_event.set()

    def run_cycle(self) -> bool:
        """Run one cycle.

        Returns:
            Whether a batch was stored.
        """
        if self._unstored is None:
            try:
                raw = self._fetcher.fetch()
            except ObserverFetchError as error:
                _LOGGER.warning("fetch_failed", error=str(error))
                return False
            if raw is None:
                return False
            self._unstored = (raw, self._beautifier.process(raw))

        raw, batch = self._unstored
        try:
            self._storer.store(batch)
        except ObserverStoreError as error:
            _LOGGER.warning("cycle_store_deferred", pulse=raw.pulse_number, error=str(error))
            return False
        self._unstored = None
        cursor = self._fetcher.advance(raw)
        _LOGGER.info("cursor_advanced", pulse=cursor.pulse, sequence=cursor.sequence)
        return True
