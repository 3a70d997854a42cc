# file: backend/open_meteo_api.py

import json
import logging
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from backend.aggregation import complete_series, daily_average, daily_peak
from backend.config import OPEN_METEO_TIMEZONE, OPEN_METEO_URL
from backend.http_client import get_json

STATIONS_FILE = Path(__file__).parent / "data" / "all_stations.json"
HOURLY_VARIABLES = ("us_aqi", "pm2_5", "pm10", "carbon_monoxide", "nitrogen_dioxide", "sulphur_dioxide", "ozone")
AVERAGE_MAPPING = {
    "pm25": "pm2_5",
    "pm10": "pm10",
    "co": "carbon_monoxide",
    "no2": "nitrogen_dioxide",
    "so2": "sulphur_dioxide",
    "o3": "ozone",
}


@lru_cache(maxsize=1)
def load_base_stations() -> List[Dict[str, Any]]:
    """Static list of monitoring stations shipped with the package."""
    with open(STATIONS_FILE, "r", encoding="utf-8") as f:
        return json.load(f)


def station_address(name: str) -> str:
    parts = name.split("/", 1)
    address = parts[1].strip() if len(parts) > 1 else ""
    return address or "Vietnam"


async def fetch_hourly_air_quality(session: aiohttp.ClientSession, coordinates: List[tuple],
                                   day: date) -> List[Dict[str, Any]]:
    """Fetch one day of hourly pollutant data for every coordinate in a single batched call."""
    params = {
        "latitude": ",".join(str(lat) for lat, _ in coordinates),
        "longitude": ",".join(str(lng) for _, lng in coordinates),
        "start_date": day.isoformat(),
        "end_date": day.isoformat(),
        "hourly": ",".join(HOURLY_VARIABLES),
        "timezone": OPEN_METEO_TIMEZONE,
    }
    data = await get_json(session, OPEN_METEO_URL, params=params)
    # a single coordinate comes back as one object instead of a list
    if isinstance(data, dict):
        return [data]
    return data


def build_station(base: Dict[str, Any], api_result: Optional[Dict[str, Any]], day: date) -> Dict[str, Any]:
    """Merge a static station with its hourly results into daily aggregates."""
    lat, lng = base["geo"][0], base["geo"][1]
    station = {
        "id": str(base["id"]),
        "name": base["name"],
        "lat": lat,
        "lng": lng,
        "address": station_address(base["name"]),
        "status": "maintenance",
        "lastUpdate": day.isoformat(),
        "environmentalData": {"aqi": None},
    }
    hourly = (api_result or {}).get("hourly")
    if not hourly:
        return station

    series = {variable: complete_series(hourly.get(variable)) for variable in HOURLY_VARIABLES}
    aqi = daily_peak(series["us_aqi"])
    env = {"aqi": aqi}
    for field, variable in AVERAGE_MAPPING.items():
        env[field] = daily_average(series[variable])
    env["hourly"] = {
        "time": hourly.get("time", []),
        **{variable: values for variable, values in series.items() if values is not None},
    }

    station["status"] = "active" if aqi is not None else "maintenance"
    station["environmentalData"] = env
    return station


async def fetch_stations_for_day(session: aiohttp.ClientSession, day: date) -> List[Dict[str, Any]]:
    base_stations = load_base_stations()
    coordinates = [(s["geo"][0], s["geo"][1]) for s in base_stations]
    results = await fetch_hourly_air_quality(session, coordinates, day)
    if len(results) != len(base_stations):
        logging.warning(f"Open-Meteo returned {len(results)} results for {len(base_stations)} stations")

    return [
        build_station(base, results[index] if index < len(results) else None, day)
        for index, base in enumerate(base_stations)
    ]
