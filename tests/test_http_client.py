# file: tests/test_http_client.py

import asyncio
import json

import aiohttp
import pytest

from backend import http_client
from backend.http_client import UpstreamError, get_bytes, get_json


class FakeResponse:
    def __init__(self, status, payload=None):
        self.status = status
        self.payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        if isinstance(self.payload, bytes):
            return json.loads(self.payload)
        return self.payload

    async def read(self):
        return self.payload


class FakeSession:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(http_client, "HTTP_BACKOFF_SECONDS", 0)


def test_retries_transient_failures():
    session = FakeSession([aiohttp.ClientConnectionError("reset"), FakeResponse(503), FakeResponse(200, {"ok": 1})])
    assert asyncio.run(get_json(session, "http://upstream", retries=2)) == {"ok": 1}
    assert session.calls == 3


def test_gives_up_after_retries():
    session = FakeSession([FakeResponse(502), FakeResponse(502)])
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(get_json(session, "http://upstream", retries=1))
    assert excinfo.value.status == 502
    assert session.calls == 2


def test_client_errors_are_not_retried():
    session = FakeSession([FakeResponse(404)])
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(get_bytes(session, "http://upstream/missing.tif", retries=3))
    assert excinfo.value.status == 404
    assert session.calls == 1


def test_get_bytes_returns_body():
    session = FakeSession([FakeResponse(200, b"II*\x00")])
    assert asyncio.run(get_bytes(session, "http://upstream/a.tif")) == b"II*\x00"


def test_non_json_body_is_upstream_error():
    session = FakeSession([FakeResponse(200, b"<ServiceExceptionReport/>")])
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(get_json(session, "http://geoserver/wms", retries=0))
    assert excinfo.value.status == 200
    assert session.calls == 1
