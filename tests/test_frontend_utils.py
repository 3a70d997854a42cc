# file: tests/test_frontend_utils.py

import pytest

import base64

import numpy as np
from rasterio.io import MemoryFile
from rasterio.transform import from_bounds

from frontend.utils import (DEM_RASTER_COLORS, PM25_RASTER_COLORS, aqi_level, colorize, filter_stations,
                            heat_index_color, heat_index_frame, heat_index_level, pm25_recommendation, raster_overlay,
                            stations_to_frame)


@pytest.mark.parametrize("aqi,label", [(0, "Tốt"), (50, "Tốt"), (51, "Trung bình"), (150, "Kém"),
                                       (200, "Xấu"), (300, "Rất xấu"), (301, "Nguy hại")])
def test_aqi_level(aqi, label):
    assert aqi_level(aqi)[0] == label


def test_aqi_level_no_data():
    assert aqi_level(None) == ("Không có dữ liệu", "#9e9e9e")


def test_pm25_recommendation_thresholds():
    assert pm25_recommendation(None) is None
    assert pm25_recommendation(12.0).startswith("Chất lượng không khí tốt")
    assert pm25_recommendation(12.1).startswith("Chất lượng không khí ở mức trung bình")
    assert pm25_recommendation(500).startswith("Mức độ nguy hại")


def test_heat_index_color():
    assert heat_index_color(30) == "#43d967"
    assert heat_index_color(40) == "#ff5e57"
    assert heat_index_color(60) == "#6d214f"


def _stations():
    hourly = {"time": ["t"] * 24, "us_aqi": list(range(24)), "pm2_5": [8.0] * 24}
    return [
        {"id": "1", "name": "Hà Nội/ Hoàn Kiếm", "address": "Hoàn Kiếm", "lat": 21.0, "lng": 105.8,
         "status": "active", "lastUpdate": "2024-05-01", "environmentalData": {"aqi": 23, "hourly": hourly}},
        {"id": "2", "name": "Đà Nẵng/ Hải Châu", "address": "Hải Châu", "lat": 16.0, "lng": 108.2,
         "status": "maintenance", "lastUpdate": "2024-05-01", "environmentalData": {"aqi": None}},
    ]


def test_stations_to_frame_projects_hour():
    df = stations_to_frame(_stations(), 7)
    assert list(df["id"]) == ["1", "2"]
    assert df.loc[0, "aqi"] == 7
    assert df.loc[0, "level"] == "Tốt"
    assert df.loc[0, "last_update"] == "2024-05-01 07:00"
    assert df.loc[1, "level"] == "Không có dữ liệu"


def test_filter_stations():
    df = stations_to_frame(_stations(), 0)
    assert list(filter_stations(df, status="active")["id"]) == ["1"]
    assert list(filter_stations(df, query="hải châu")["id"]) == ["2"]
    assert len(filter_stations(df)) == 2
    assert filter_stations(df, query="Huế").empty


def test_heat_index_level_and_table():
    assert heat_index_level(33)[0] == "Khó chịu nhẹ"
    table = heat_index_frame()
    assert table.shape == (24, 16)
    assert table.loc["43°C", "100%"] == 85
    assert table.loc["20°C", "25%"] == 20


def test_colorize_pm25_palette():
    data = np.array([[5.0, 20.0], [-1.0, -9999.0]])
    rgba = colorize(data, PM25_RASTER_COLORS, floor=0)
    assert tuple(rgba[:, 0, 0]) == (0x00, 0xE4, 0x00, 255)
    assert tuple(rgba[:, 0, 1]) == (0xFF, 0xFF, 0x00, 255)
    # below the floor and the missing-data sentinel stay transparent
    assert rgba[3, 1, 0] == 0
    assert rgba[3, 1, 1] == 0


def test_colorize_dem_low_ground_is_transparent():
    rgba = colorize(np.array([[0.0, 2500.0]]), DEM_RASTER_COLORS)
    assert rgba[3, 0, 0] == 0
    assert tuple(rgba[:, 0, 1]) == (0xA0, 0x52, 0x2D, 255)


def test_raster_overlay_builds_image_layer():
    data = np.array([[5.0, 40.0], [np.nan, 300.0]], dtype="float32")
    with MemoryFile() as memfile:
        with memfile.open(driver="GTiff", width=2, height=2, count=1, dtype="float32", crs="EPSG:4326",
                          transform=from_bounds(102.0, 8.0, 110.0, 24.0, 2, 2)) as dst:
            dst.write(data, 1)
        memfile.seek(0)
        content = memfile.read()

    layer = raster_overlay(content, PM25_RASTER_COLORS, floor=0)

    assert layer["sourcetype"] == "image"
    assert layer["coordinates"] == [[102.0, 24.0], [110.0, 24.0], [110.0, 8.0], [102.0, 8.0]]
    prefix = "data:image/png;base64,"
    assert layer["source"].startswith(prefix)
    png = base64.b64decode(layer["source"][len(prefix):])
    with MemoryFile(png) as memfile:
        with memfile.open() as src:
            rgba = src.read()
    assert rgba.shape == (4, 2, 2)
    assert tuple(rgba[:, 0, 1]) == (0xFF, 0x7E, 0x00, 255)
    assert rgba[3, 1, 0] == 0
