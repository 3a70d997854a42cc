# file: backend/geoserver.py

from typing import Any, Dict, Optional

import aiohttp

from backend.config import GEOSERVER_WMS_URL
from backend.http_client import get_json


async def fetch_feature_info(session: aiohttp.ClientSession, layer: str, bbox: str, width: int, height: int,
                             x: int, y: int, time: Optional[str] = None) -> Dict[str, Any]:
    """WMS 1.1.1 GetFeatureInfo for one pixel of a rendered map."""
    params = {
        "service": "WMS",
        "version": "1.1.1",
        "request": "GetFeatureInfo",
        "layers": layer,
        "query_layers": layer,
        "info_format": "application/json",
        "feature_count": "1",
        "srs": "EPSG:4326",
        "bbox": bbox,
        "width": str(width),
        "height": str(height),
        "x": str(x),
        "y": str(y),
    }
    if time:
        params["time"] = time
    return await get_json(session, GEOSERVER_WMS_URL, params=params)


def extract_gray_index(payload: Optional[Dict[str, Any]]) -> Optional[float]:
    features = (payload or {}).get("features") or []
    if not features:
        return None
    return features[0].get("properties", {}).get("GRAY_INDEX")
