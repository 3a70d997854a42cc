#file: frontend/utils.py

import base64
import warnings

import numpy as np
import pandas as pd
from rasterio.errors import NotGeoreferencedWarning
from rasterio.io import MemoryFile

from backend.aggregation import project_hour
from backend.raster import NODATA_THRESHOLD

# (upper bound, label, color), evaluated in order; first match wins
AQI_LEVELS = [
    (50, "Tốt", "#00e400"),
    (100, "Trung bình", "#ffff00"),
    (150, "Kém", "#ff7e00"),
    (200, "Xấu", "#ff0000"),
    (300, "Rất xấu", "#8f3f97"),
    (float("inf"), "Nguy hại", "#7e0023"),
]
NO_DATA_LABEL = "Không có dữ liệu"
NO_DATA_COLOR = "#9e9e9e"

PM25_RECOMMENDATIONS = [
    (12.0, "Chất lượng không khí tốt. Bạn có thể hoạt động ngoài trời bình thường."),
    (35.4, "Chất lượng không khí ở mức trung bình. Nhóm nhạy cảm (người già, trẻ em, người có bệnh hô hấp) "
           "nên giảm bớt các hoạt động ngoài trời."),
    (55.4, "Chất lượng không khí kém. Nhóm nhạy cảm nên tránh ra ngoài. "
           "Những người khác nên hạn chế các hoạt động gắng sức ngoài trời."),
    (150.4, "Chất lượng không khí xấu. Mọi người nên tránh các hoạt động ngoài trời. "
            "Nếu phải ra ngoài, hãy đeo khẩu trang chuyên dụng."),
    (250.4, "Chất lượng không khí rất xấu, ảnh hưởng nghiêm trọng đến sức khỏe. "
            "Mọi người nên ở trong nhà và đóng kín cửa sổ."),
    (float("inf"), "Mức độ nguy hại. Cảnh báo khẩn cấp về sức khỏe. Mọi người tuyệt đối không ra ngoài."),
]

HEAT_INDEX_LEVELS = [
    (30, "Dễ chịu", "#43d967", "Không gây khó chịu cho đa số người."),
    (34, "Khó chịu nhẹ", "#ffe066", "Có thể gây khó chịu nhẹ với người nhạy cảm."),
    (39, "Khó chịu", "#ffb347", "Sự khó chịu thể hiện rõ ràng. Giới hạn thực hiện các công việc thể chất nặng nhọc."),
    (45, "Rất khó chịu", "#ff5e57", "Tránh các hoạt động cố sức bên ngoài trời."),
    (54, "Nguy hiểm", "#b83227", "Dừng mọi hoạt động thể chất vì có thể gây ra nguy hiểm nghiêm trọng."),
    (float("inf"), "Độc hại", "#6d214f", "Rủi ro về say nắng có thể dẫn đến tử vong."),
]

# Heat index by air temperature (rows, °C) and relative humidity (columns, %)
HEAT_INDEX_HUMIDITY = [25, 30, 34, 40, 45, 50, 55, 60, 65, 70, 75, 80, 85, 90, 95, 100]
HEAT_INDEX_TABLE = {
    43: [49, 51, 54, 56, 59, 61, 64, 66, 68, 71, 73, 75, 78, 80, 83, 85],
    42: [48, 50, 52, 54, 57, 59, 61, 64, 66, 68, 70, 73, 75, 77, 79, 82],
    41: [46, 48, 50, 53, 55, 57, 59, 61, 63, 65, 68, 70, 73, 74, 76, 78],
    40: [45, 47, 49, 51, 53, 55, 57, 59, 61, 63, 65, 67, 70, 71, 73, 75],
    39: [43, 45, 47, 49, 51, 53, 55, 57, 58, 60, 62, 64, 66, 68, 70, 72],
    38: [42, 44, 45, 47, 49, 51, 52, 54, 56, 58, 60, 62, 63, 65, 67, 69],
    37: [40, 42, 44, 45, 47, 49, 50, 52, 54, 56, 57, 59, 61, 63, 64, 66],
    36: [39, 40, 42, 44, 45, 47, 48, 50, 52, 53, 55, 57, 58, 60, 62, 63],
    35: [37, 39, 40, 42, 43, 45, 46, 48, 50, 51, 53, 54, 56, 57, 59, 60],
    34: [36, 37, 39, 40, 42, 43, 45, 46, 47, 49, 50, 52, 53, 55, 56, 58],
    33: [34, 36, 37, 39, 40, 41, 43, 44, 45, 47, 48, 50, 51, 52, 54, 55],
    32: [33, 34, 36, 37, 38, 40, 41, 42, 43, 45, 46, 47, 49, 50, 51, 53],
    31: [32, 33, 34, 35, 37, 38, 39, 40, 42, 43, 44, 45, 46, 48, 49, 50],
    30: [30, 32, 33, 34, 35, 36, 37, 38, 40, 41, 42, 43, 44, 45, 47, 48],
    29: [29, 30, 31, 32, 33, 34, 36, 37, 38, 39, 40, 41, 42, 43, 44, 45],
    28: [28, 29, 30, 31, 32, 33, 34, 35, 36, 37, 38, 39, 40, 41, 42, 43],
    27: [27, 27, 28, 29, 30, 31, 32, 33, 34, 35, 36, 37, 38, 39, 40, 41],
    26: [26, 26, 27, 28, 29, 30, 31, 32, 32, 33, 34, 35, 36, 37, 38, 39],
    25: [25, 25, 26, 26, 27, 28, 29, 30, 31, 32, 33, 33, 34, 35, 36, 37],
    24: [24, 24, 24, 25, 26, 27, 27, 28, 29, 30, 31, 32, 32, 33, 34, 35],
    23: [23, 23, 23, 24, 24, 25, 26, 27, 27, 28, 29, 30, 31, 31, 32, 33],
    22: [22, 22, 22, 22, 23, 24, 24, 25, 26, 27, 27, 28, 29, 30, 30, 31],
    21: [21, 21, 21, 21, 22, 22, 23, 24, 24, 25, 26, 26, 27, 28, 28, 29],
    20: [20, 20, 20, 20, 20, 21, 22, 22, 23, 23, 24, 25, 25, 26, 27, 27],
}

# Raster overlay palettes, (upper bound, RGBA hex); values above the last bound take the last color
PM25_RASTER_COLORS = [
    (12, "#00E400"),
    (35.4, "#FFFF00"),
    (55.4, "#FF7E00"),
    (150.4, "#FF0000"),
    (250.4, "#8F3F97"),
    (float("inf"), "#7E0023"),
]
DEM_RASTER_COLORS = [
    (0, "#2e8b5700"),
    (200, "#2e8b57"),
    (500, "#6b8e23"),
    (1000, "#b8860b"),
    (2000, "#cd853f"),
    (float("inf"), "#a0522d"),
]
OVERLAY_OPACITY = 0.7

STATUS_LABELS = {"active": "Hoạt động", "maintenance": "Bảo trì"}


def _first_match(table, value):
    for row in table:
        if value <= row[0]:
            return row
    return table[-1]


def aqi_level(aqi):
    """Return (label, color) for an AQI value."""
    if aqi is None or pd.isna(aqi):
        return NO_DATA_LABEL, NO_DATA_COLOR
    _, label, color = _first_match(AQI_LEVELS, aqi)
    return label, color


def pm25_recommendation(value):
    if value is None or pd.isna(value):
        return None
    return _first_match(PM25_RECOMMENDATIONS, value)[1]


def heat_index_level(value):
    """Return (label, color, advice) for a heat index in °C."""
    _, label, color, advice = _first_match(HEAT_INDEX_LEVELS, value)
    return label, color, advice


def heat_index_color(value):
    return heat_index_level(value)[1]


def heat_index_frame():
    """Heat index lookup table as a DataFrame indexed by temperature."""
    df = pd.DataFrame.from_dict(HEAT_INDEX_TABLE, orient = "index", columns = [f"{h}%" for h in HEAT_INDEX_HUMIDITY])
    df.index = [f"{t}°C" for t in df.index]
    df.index.name = "Nhiệt độ"
    return df


def stations_to_frame(stations, hour):
    """Project each station onto the selected hour and flatten into a DataFrame."""
    rows = []
    for station in stations:
        snapshot = project_hour(station, hour)
        label, color = aqi_level(snapshot["aqi"])
        rows.append({
            "id": station["id"],
            "name": station["name"],
            "address": station.get("address", ""),
            "lat": station["lat"],
            "lon": station["lng"],
            "status": station.get("status", "maintenance"),
            "level": label,
            "color": color,
            **{k: v for k, v in snapshot.items() if k != "lastUpdate"},
            "last_update": snapshot["lastUpdate"] or station.get("lastUpdate"),
        })
    return pd.DataFrame(rows)


def filter_stations(station_df, query = "", status = "all"):
    """Filter stations by a case-insensitive name/address query and by status."""
    if station_df.empty :
        return station_df
    filtered = station_df
    if status != "all" :
        filtered = filtered[filtered["status"] == status]
    if query :
        needle = query.strip().lower()
        mask = filtered["name"].str.lower().str.contains(needle, regex = False) | \
            filtered["address"].str.lower().str.contains(needle, regex = False)
        filtered = filtered[mask]
    return filtered


def _hex_to_rgba(color):
    color = color.lstrip("#")
    alpha = int(color[6:8], 16) if len(color) == 8 else 255
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16), alpha


def colorize(data, table, nodata = None, floor = None):
    """RGBA bands (4, rows, cols) for a raster band; missing pixels and values below `floor` stay transparent."""
    data = np.asarray(data, dtype = "float64")
    rgba = np.zeros((4,) + data.shape, dtype = "uint8")
    assigned = np.isnan(data) | (data < NODATA_THRESHOLD)
    if nodata is not None :
        assigned |= data == nodata
    if floor is not None :
        assigned |= data < floor
    for upper, color in table :
        mask = ~assigned & (data <= upper)
        rgba[:, mask] = np.array(_hex_to_rgba(color), dtype = "uint8")[:, None]
        assigned |= mask
    return rgba


def raster_overlay(content, table, floor = None):
    """Mapbox image layer for a GeoTIFF: a colorized PNG pinned to the raster's corners."""
    with MemoryFile(content) as memfile :
        with memfile.open() as src :
            rgba = colorize(src.read(1), table, src.nodata, floor)
            west, south, east, north = src.bounds
    height, width = rgba.shape[1:]

    with warnings.catch_warnings() :
        warnings.simplefilter("ignore", NotGeoreferencedWarning)
        with MemoryFile() as png :
            with png.open(driver = "PNG", width = width, height = height, count = 4, dtype = "uint8") as dst :
                dst.write(rgba)
            png.seek(0)
            encoded = base64.b64encode(png.read()).decode("ascii")

    return {
        "sourcetype" : "image",
        "source" : f"data:image/png;base64,{encoded}",
        "coordinates" : [[west, north], [east, north], [east, south], [west, south]],
        "opacity" : OVERLAY_OPACITY,
        "below" : "traces",
    }
