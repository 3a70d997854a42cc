# file: backend/aggregation.py

import asyncio
import logging
import math
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

HOURS_PER_DAY = 24
CHART_RADIUS_DAYS = 3

# Snapshot field -> Open-Meteo hourly variable
HOURLY_FIELDS = {
    "aqi": "us_aqi",
    "pm25": "pm2_5",
    "pm10": "pm10",
    "co": "carbon_monoxide",
    "no2": "nitrogen_dioxide",
    "so2": "sulphur_dioxide",
    "o3": "ozone",
}


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _valid(values: Optional[Sequence[Optional[float]]]) -> List[float]:
    if not values:
        return []
    return [v for v in values if v is not None]


def complete_series(values: Optional[Sequence[Any]]) -> Optional[List[Any]]:
    """Return the series only if it covers a full day, otherwise treat it as missing."""
    if values is None or len(values) != HOURS_PER_DAY:
        return None
    return list(values)


def daily_average(values: Optional[Sequence[Optional[float]]]) -> Optional[float]:
    """Mean of the non-null hourly values rounded to one decimal, or None if there are none."""
    valid = _valid(values)
    if not valid:
        return None
    return _round_half_up(sum(valid) / len(valid), 1)


def daily_peak(values: Optional[Sequence[Optional[float]]]) -> Optional[int]:
    """Maximum of the non-null hourly values rounded to an integer, or None if there are none."""
    valid = _valid(values)
    if not valid:
        return None
    return int(_round_half_up(max(valid)))


def chart_dates(center: date, radius: int = CHART_RADIUS_DAYS) -> List[date]:
    return [center + timedelta(days=offset) for offset in range(-radius, radius + 1)]


def format_chart_date(day: date) -> str:
    return day.strftime("%d/%m")


async def build_chart_series(center: date, lookup: Callable[[date], Awaitable[Optional[float]]],
                             radius: int = CHART_RADIUS_DAYS) -> List[Dict[str, Any]]:
    """
    Run one lookup per day of the window concurrently.

    A lookup that raises only blanks its own point; the rest of the window still resolves.
    """
    days = chart_dates(center, radius)
    results = await asyncio.gather(*(lookup(day) for day in days), return_exceptions=True)

    points = []
    for day, result in zip(days, results):
        if isinstance(result, Exception):
            logging.warning(f"Chart lookup for {day.isoformat()} failed: {result}")
            result = None
        points.append({"date": format_chart_date(day), "value": result})
    return points


def project_hour(station: Dict[str, Any], hour: int) -> Dict[str, Any]:
    """Pick the values of a single hour out of a station's daily hourly block."""
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"hour must be in 0..23, got {hour}")

    snapshot: Dict[str, Any] = {field: None for field in HOURLY_FIELDS}
    snapshot["lastUpdate"] = None

    env = station.get("environmentalData") or {}
    hourly = env.get("hourly")
    if not hourly or len(hourly.get("time") or []) <= hour:
        return snapshot

    for field, variable in HOURLY_FIELDS.items():
        series = hourly.get(variable) or []
        snapshot[field] = series[hour] if len(series) > hour else None
    snapshot["lastUpdate"] = f"{station.get('lastUpdate')} {hour:02d}:00"
    return snapshot
