# file: backend/raster.py

import asyncio
import logging
import math
import re
from datetime import date
from pathlib import Path
from typing import Optional, Tuple, Union

import aiohttp
import numpy as np
import rasterio
from rasterio.io import MemoryFile
from rasterio.windows import Window

from backend.config import HTTP_TIMEOUT_SECONDS, RASTER_BASE_URL, RASTER_DIR
from backend.http_client import get_bytes

DEM_FILENAME = "DEM_VN_3km.tif"
NODATA_THRESHOLD = -999
RASTER_NAME_PATTERN = re.compile(r"^(PM25_\d{8}_3km|DEM_VN_3km)\.tif$")


def raster_filename(layer: str, day: Union[date, str, None] = None) -> str:
    """Map a layer name (and a date for PM25) onto the raster file that holds it."""
    if layer == "DEM":
        return DEM_FILENAME
    if layer == "PM25":
        if day is None:
            raise ValueError("PM25 rasters need a date")
        day_str = day.isoformat() if isinstance(day, date) else str(day)
        return f"PM25_{day_str.replace('-', '')}_3km.tif"
    raise ValueError(f"Unknown raster layer: {layer}")


def is_known_raster_name(name: str) -> bool:
    return bool(RASTER_NAME_PATTERN.match(name))


def pixel_indices(bounds: Tuple[float, float, float, float], width: int, height: int,
                  lat: float, lng: float) -> Optional[Tuple[int, int]]:
    """Column/row of the pixel covering (lat, lng), or None when the point is outside the bounds."""
    min_lng, min_lat, max_lng, max_lat = bounds
    if not (min_lng <= lng <= max_lng and min_lat <= lat <= max_lat):
        return None
    pixel_x = math.floor(width * (lng - min_lng) / (max_lng - min_lng))
    pixel_y = math.floor(height * (max_lat - lat) / (max_lat - min_lat))
    # the max edge belongs to the last pixel
    return min(pixel_x, width - 1), min(pixel_y, height - 1)


def read_pixel(dataset, lat: float, lng: float, band: int = 1) -> Optional[float]:
    """Read the single pixel under (lat, lng) from an open rasterio dataset."""
    indices = pixel_indices(tuple(dataset.bounds), dataset.width, dataset.height, lat, lng)
    if indices is None:
        return None
    pixel_x, pixel_y = indices
    value = float(dataset.read(band, window=Window(pixel_x, pixel_y, 1, 1))[0, 0])
    if np.isnan(value) or value < NODATA_THRESHOLD:
        return None
    if dataset.nodata is not None and value == dataset.nodata:
        return None
    return value


def _sample_file(path: Path, lat: float, lng: float) -> Optional[float]:
    with rasterio.open(path) as src:
        return read_pixel(src, lat, lng)


def _sample_bytes(content: bytes, lat: float, lng: float) -> Optional[float]:
    with MemoryFile(content) as memfile:
        with memfile.open() as src:
            return read_pixel(src, lat, lng)


async def sample_raster(session: aiohttp.ClientSession, lat: float, lng: float, filename: str,
                        base_url: Optional[str] = RASTER_BASE_URL,
                        raster_dir: Union[str, Path] = RASTER_DIR) -> Optional[float]:
    """Sample a raster at a coordinate. Any fetch or parse failure yields None."""
    try:
        if base_url:
            content = await get_bytes(session, f"{base_url.rstrip('/')}/{filename}")
            return await asyncio.to_thread(_sample_bytes, content, lat, lng)
        return await asyncio.to_thread(_sample_file, Path(raster_dir) / filename, lat, lng)
    except Exception as e:
        logging.warning(f"Error sampling {filename} at ({lat}, {lng}): {e}")
        return None


async def open_raster_stream(session: aiohttp.ClientSession, filename: str,
                             base_url: Optional[str] = RASTER_BASE_URL,
                             raster_dir: Union[str, Path] = RASTER_DIR) -> Union[Path, aiohttp.ClientResponse, None]:
    """
    Locate a raster for pass-through streaming.

    Returns a local path, an open upstream response (the caller must release it),
    or None when the raster does not exist.
    """
    if not base_url:
        path = Path(raster_dir) / filename
        return path if path.is_file() else None

    # per-read limits only, the body may stream longer than HTTP_TIMEOUT_SECONDS
    timeout = aiohttp.ClientTimeout(total=None, sock_connect=HTTP_TIMEOUT_SECONDS, sock_read=HTTP_TIMEOUT_SECONDS)
    response = await session.get(f"{base_url.rstrip('/')}/{filename}", timeout=timeout)
    if response.status == 404:
        response.release()
        return None
    if response.status != 200:
        response.release()
        raise aiohttp.ClientResponseError(response.request_info, response.history,
                                          status=response.status, message=f"HTTP {response.status}")
    return response
