# file: tests/test_data_fetch.py

import asyncio

import pytest

from frontend import data_fetch
from frontend.data_fetch import BackendUnavailable, fetch_chart_data, fetch_map_info, fetch_raster, \
    fetch_stations, load_raster, load_stations


class TimingOutSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def get(self, url, **kwargs):
        raise asyncio.TimeoutError()

    def post(self, url, **kwargs):
        raise asyncio.TimeoutError()


@pytest.fixture
def slow_backend(monkeypatch):
    monkeypatch.setattr(data_fetch.aiohttp, "ClientSession", TimingOutSession)


def test_timeouts_degrade_to_empty_results(slow_backend):
    assert asyncio.run(fetch_stations("2024-05-01")) == []
    assert asyncio.run(fetch_map_info(21.0, 105.8, "2024-05-01", "PM25")) is None
    assert asyncio.run(fetch_chart_data(21.0, 105.8, "2024-05-01")) == []
    assert asyncio.run(fetch_raster("DEM_VN_3km.tif")) is None


def test_load_stations_raises_when_backend_fails(slow_backend):
    with pytest.raises(BackendUnavailable):
        load_stations("2024-05-01")


def test_load_raster_raises_when_missing(slow_backend):
    with pytest.raises(BackendUnavailable):
        load_raster("DEM_VN_3km.tif")


def test_load_stations_passes_data_through(monkeypatch):
    async def fake_fetch(day):
        return [{"id": "1"}]

    monkeypatch.setattr(data_fetch, "fetch_stations", fake_fetch)
    assert load_stations("2024-05-01") == [{"id": "1"}]
