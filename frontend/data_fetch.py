#file: frontend/data_fetch.py

import os
import asyncio
import aiohttp
import logging

FASTAPI_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
REQUEST_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


async def fetch_stations(day):
    """Fetch the daily station rollup from FastAPI asynchronously."""
    url = f"{FASTAPI_URL}/api/stations/{day}"
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as response:
                response.raise_for_status()
                data = await response.json()
                return data.get("stations", [])
    except REQUEST_ERRORS as e:
        logging.error(f"Error fetching stations: {e!r}")
        return []


async def fetch_map_info(lat, lng, day, layer_name):
    """Fetch the raster value and place name for a point."""
    url = f"{FASTAPI_URL}/api/map-info"
    payload = {"lat": lat, "lng": lng, "time": str(day), "layerName": layer_name}
    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(url, json=payload) as response:
                response.raise_for_status()
                return await response.json()
    except REQUEST_ERRORS as e:
        logging.error(f"Error fetching map info: {e!r}")
        return None


async def fetch_chart_data(lat, lng, center_day):
    """Fetch seven days of PM2.5 values around a date."""
    url = f"{FASTAPI_URL}/api/chart-data"
    payload = {"lat": lat, "lng": lng, "centerDateStr": str(center_day)}
    async with aiohttp.ClientSession() as session:
        try:
            async with session.post(url, json=payload) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientResponseError as e:
            logging.error(f"[ERROR] HTTP {e.status}: {e.message}")
        except REQUEST_ERRORS as e:
            logging.error(f"[ERROR] Network request failed: {e!r}")

    return []


async def fetch_raster(filename):
    """Download a GeoTIFF through the backend raster proxy; None if missing or unreachable."""
    url = f"{FASTAPI_URL}/api/tiff-proxy/{filename}"
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as response:
                if response.status == 404:
                    logging.warning(f"Raster {filename} not available")
                    return None
                response.raise_for_status()
                return await response.read()
    except REQUEST_ERRORS as e:
        logging.error(f"Error fetching raster {filename}: {e!r}")
        return None


class BackendUnavailable(Exception):
    """Raised by the load_* helpers so callers never cache an empty result."""


def load_stations(day):
    stations = asyncio.run(fetch_stations(day))
    if not stations:
        raise BackendUnavailable(f"No station data for {day}")
    return stations


def load_raster(filename):
    content = asyncio.run(fetch_raster(filename))
    if content is None:
        raise BackendUnavailable(f"Raster {filename} unavailable")
    return content
