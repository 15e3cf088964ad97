"""Unit tests for the HTTP export client."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from core.errors import ObserverFetchError
from ledger.export_client import HttpExportClient
from ledger.records import Result
from tests import record_factory as factory


def _client(handler) -> HttpExportClient:
    return HttpExportClient("http://export.local", 5.0, transport=httpx.MockTransport(handler))


def test_get_pulses_decodes_json_lines() -> None:
    """Pulse lines should decode into pulses and pass paging params."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.dumps(
            {"number": factory.PULSE, "entropy": base64.b64encode(b"e").decode(), "timestamp": 9}
        )
        return httpx.Response(200, text=body + "\n")

    pulses = list(_client(handler).get_pulses(after=factory.PULSE - 1, count=1))

    assert [pulse.number for pulse in pulses] == [factory.PULSE]
    assert pulses[0].entropy == b"e"
    assert seen[0].url.path == "/pulses"
    assert seen[0].url.params["after"] == str(factory.PULSE - 1)


def test_get_records_decodes_result_lines() -> None:
    """Record lines should decode into typed records."""
    request_id = factory.new_id()
    record_id = factory.new_id()
    line = {
        "id": str(record_id),
        "sequence": 1,
        "type": "result",
        "request": str(request_id),
        "payload": base64.b64encode(factory.pack({"Returns": [None, None]})).decode(),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["pulse"] == str(factory.PULSE)
        return httpx.Response(200, text=json.dumps(line) + "\n\n")

    records = list(_client(handler).get_records(factory.PULSE, 0, 10))

    assert len(records) == 1
    assert isinstance(records[0].payload, Result)
    assert records[0].payload.request == request_id


def test_http_errors_become_fetch_errors() -> None:
    """Server errors should surface as fetch errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(ObserverFetchError):
        list(_client(handler).get_pulses(after=0, count=1))


def test_invalid_json_line_becomes_fetch_error() -> None:
    """A line that is not JSON should surface as a fetch error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="{broken\n")

    with pytest.raises(ObserverFetchError):
        list(_client(handler).get_records(factory.PULSE, 0, 10))
