"""Ledger export stream client.

The export service streams pulses and records as JSON lines. Callers see
plain iterators of decoded ``Pulse`` and ``Record`` objects.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping, Protocol

import httpx

from core.errors import ObserverFetchError
from core.logging_config import get_logger
from core.types import Pulse
from ledger.codec import decode_pulse_envelope, decode_record_envelope
from ledger.records import Record

_LOGGER = get_logger(__name__)


class ExportClient(Protocol):
    """Read access to the ledger export stream.

    Record sequences number the records of one pulse from 1 upwards with
    no reuse. Sequence 0 is never assigned: it is the "before the first
    record" position of a pulse, so a record carrying it is treated as
    already seen.
    """

    def get_pulses(self, after: int, count: int) -> Iterator[Pulse]:
        """Yield up to ``count`` pulses strictly newer than ``after``."""
        ...

    def get_records(self, pulse: int, after_sequence: int, count: int) -> Iterator[Record]:
        """Yield up to ``count`` records from ``pulse`` on, after the given sequence."""
        ...


class HttpExportClient:
    """Export client backed by the HTTP JSON-lines export endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def get_pulses(self, after: int, count: int) -> Iterator[Pulse]:
        for envelope in self._stream("/pulses", {"after": after, "count": count}):
            yield decode_pulse_envelope(envelope)

    def get_records(self, pulse: int, after_sequence: int, count: int) -> Iterator[Record]:
        params = {"pulse": pulse, "after": after_sequence, "count": count}
        for envelope in self._stream("/records", params):
            yield decode_record_envelope(envelope)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpExportClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _stream(self, path: str, params: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
        """Yield decoded JSON lines of one export response.

        Raises:
            ObserverFetchError: If the request fails or a line is not JSON.
        """
        try:
            with self._client.stream("GET", path, params=dict(params)) as response:
                response.raise_for_status()
                for line in response.iter_lines():
                    if line.strip():
                        yield _parse_line(path, line)
        except httpx.HTTPError as error:
            _LOGGER.warning("export_request_failed", path=path, error=str(error))
            raise ObserverFetchError(f"Export request {path} failed: {error}") from error


def _parse_line(path: str, line: str) -> Mapping[str, Any]:
    try:
        envelope = json.loads(line)
    except json.JSONDecodeError as error:
        raise ObserverFetchError(f"Export stream {path} sent invalid JSON: {error}") from error
    if not isinstance(envelope, Mapping):
        raise ObserverFetchError(f"Export stream {path} sent a non-object line.")
    return envelope
