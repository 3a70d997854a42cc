# file: tests/test_aggregation.py

import asyncio
from datetime import date

import pytest

from backend.aggregation import (build_chart_series, chart_dates, complete_series, daily_average, daily_peak,
                                 format_chart_date, project_hour)


def test_average_and_peak_skip_nulls():
    values = [10, 20, None, 30]
    assert daily_average(values) == 20.0
    assert daily_peak(values) == 30


def test_all_null_series_has_no_aggregates():
    values = [None] * 24
    assert daily_average(values) is None
    assert daily_peak(values) is None


def test_empty_or_missing_series():
    assert daily_average([]) is None
    assert daily_peak(None) is None


def test_rounding_is_half_up():
    assert daily_average([1.25, 1.3]) == 1.3
    assert daily_peak([41.5, 12]) == 42
    assert daily_peak([41.4]) == 41


def test_complete_series_requires_full_day():
    assert complete_series(list(range(24))) == list(range(24))
    assert complete_series(list(range(23))) is None
    assert complete_series(None) is None


def test_chart_dates_window():
    days = chart_dates(date(2024, 5, 1))
    assert len(days) == 7
    assert days[0] == date(2024, 4, 28)
    assert days[3] == date(2024, 5, 1)
    assert days[-1] == date(2024, 5, 4)
    assert format_chart_date(days[0]) == "28/04"


def test_chart_series_isolates_a_failing_day():
    failing = date(2024, 4, 30)

    async def lookup(day):
        if day == failing:
            raise RuntimeError("raster host unreachable")
        return float(day.day)

    points = asyncio.run(build_chart_series(date(2024, 5, 1), lookup))

    assert len(points) == 7
    assert [p["value"] for p in points].count(None) == 1
    assert points[2] == {"date": "30/04", "value": None}
    assert points[3] == {"date": "01/05", "value": 1.0}


def _station(hours=24):
    return {
        "id": "1",
        "lastUpdate": "2024-05-01",
        "environmentalData": {
            "hourly": {
                "time": [f"2024-05-01T{h:02d}:00" for h in range(hours)],
                "us_aqi": [h * 2 for h in range(hours)],
                "pm2_5": [h + 0.5 for h in range(hours)],
                "pm10": [None] * hours,
                "carbon_monoxide": [100] * hours,
                "nitrogen_dioxide": [5] * hours,
                "sulphur_dioxide": [1] * hours,
                "ozone": [60] * hours,
            }
        },
    }


def test_project_hour_picks_single_hour():
    snapshot = project_hour(_station(), 13)
    assert snapshot["aqi"] == 26
    assert snapshot["pm25"] == 13.5
    assert snapshot["pm10"] is None
    assert snapshot["o3"] == 60
    assert snapshot["lastUpdate"] == "2024-05-01 13:00"


def test_project_hour_short_series_is_no_data():
    snapshot = project_hour(_station(hours=10), 15)
    assert all(value is None for value in snapshot.values())


def test_project_hour_without_hourly_block():
    snapshot = project_hour({"environmentalData": {"aqi": None}}, 0)
    assert snapshot["aqi"] is None


def test_project_hour_rejects_invalid_hour():
    with pytest.raises(ValueError):
        project_hour(_station(), 24)
