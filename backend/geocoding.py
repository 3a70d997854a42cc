# file: backend/geocoding.py

import logging

import aiohttp

from backend.config import GEOCODER_URL, GEOCODER_USER_AGENT
from backend.http_client import get_json

LOCATION_PLACEHOLDER = "Unknown location"


async def reverse_geocode(session: aiohttp.ClientSession, lat: float, lng: float) -> str:
    """Best-effort place name for a coordinate; never raises."""
    params = {"format": "jsonv2", "lat": lat, "lon": lng, "zoom": 14, "accept-language": "vi"}
    try:
        data = await get_json(session, GEOCODER_URL, params=params,
                              headers={"User-Agent": GEOCODER_USER_AGENT}, retries=0)
    except Exception as e:
        logging.warning(f"Reverse geocoding failed for ({lat}, {lng}): {e}")
        return LOCATION_PLACEHOLDER
    return (data or {}).get("display_name") or LOCATION_PLACEHOLDER
