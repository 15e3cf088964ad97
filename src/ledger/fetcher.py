"""Cursor-driven pulse fetcher.

The fetcher turns the export stream into one RawBatch per pulse. Its
cursor only moves forward, and only when the caller confirms a batch was
stored, so a failed cycle fetches the same pulse again.
"""

from __future__ import annotations

from core.errors import ObserverDecodeError, ObserverFetchError
from core.logging_config import get_logger
from core.types import Cursor
from ledger.export_client import ExportClient
from ledger.records import Record
from pipeline.batch import RawBatch

_LOGGER = get_logger(__name__)


class Fetcher:
    """Fetches whole pulses from an export client."""

    def __init__(self, client: ExportClient, batch_size: int, cursor: Cursor) -> None:
        self._client = client
        self._batch_size = batch_size
        self._cursor = cursor

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    def fetch(self) -> RawBatch | None:
        """Fetch the next unprocessed records.

        A cursor that is not known to be exhausted is checked first for
        records after its sequence; otherwise the next pulse is fetched
        from its beginning.

        Returns:
            Batch of one pulse, or None when there is nothing new yet.

        Raises:
            ObserverFetchError: If the export stream fails or sends bad data.
        """
        try:
            return self._fetch()
        except ObserverDecodeError as error:
            raise ObserverFetchError(f"Export stream sent an undecodable item: {error}") from error

    def advance(self, batch: RawBatch) -> Cursor:
        """Move the cursor past a batch that has been stored."""
        if batch.records:
            sequence = batch.records[-1].sequence
        elif batch.pulse_number == self._cursor.pulse:
            sequence = self._cursor.sequence
        else:
            sequence = 0
        self._cursor = Cursor(pulse=batch.pulse_number, sequence=sequence, exhausted=True)
        return self._cursor

    def _fetch(self) -> RawBatch | None:
        cursor = self._cursor
        if not cursor.exhausted:
            records = self._drain(cursor.pulse, cursor.sequence)
            if records:
                _LOGGER.info("pulse_resumed", pulse=cursor.pulse, records=len(records))
                return RawBatch(pulse_number=cursor.pulse, pulse=None, records=records)
            self._cursor = Cursor(pulse=cursor.pulse, sequence=cursor.sequence, exhausted=True)

        pulses = list(self._client.get_pulses(self._cursor.pulse, 1))
        if not pulses:
            _LOGGER.debug("no_new_pulse", after=self._cursor.pulse)
            return None
        pulse = pulses[0]
        if pulse.number <= self._cursor.pulse:
            raise ObserverFetchError(
                f"Export returned pulse {pulse.number} not newer than {self._cursor.pulse}."
            )
        records = self._drain(pulse.number, 0)
        _LOGGER.info("pulse_fetched", pulse=pulse.number, records=len(records))
        return RawBatch(pulse_number=pulse.number, pulse=pulse, records=records)

    def _drain(self, pulse_number: int, after_sequence: int) -> list[Record]:
        """Page through one pulse until a short page or a newer pulse."""
        records: list[Record] = []
        last_sequence = after_sequence
        while True:
            page = list(self._client.get_records(pulse_number, last_sequence, self._batch_size))
            progressed = False
            reached_next_pulse = False
            for record in page:
                if record.pulse_number > pulse_number:
                    reached_next_pulse = True
                    break
                if record.pulse_number < pulse_number or record.sequence <= last_sequence:
                    _LOGGER.warning(
                        "stale_record_skipped",
                        pulse=pulse_number,
                        record_pulse=record.pulse_number,
                        sequence=record.sequence,
                    )
                    continue
                records.append(record)
                last_sequence = record.sequence
                progressed = True
            if reached_next_pulse or len(page) < self._batch_size or not progressed:
                return records
