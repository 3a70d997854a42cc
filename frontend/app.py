#file: frontend/app.py

import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import asyncio
import pandas as pd
import streamlit as st

st.set_page_config(page_title="Bản đồ chất lượng không khí Việt Nam", page_icon="🌏", layout="wide")
pd.options.display.float_format = "{:.2f}".format

from backend.raster import raster_filename
from backend.utils import get_local_today
from frontend.data_fetch import BackendUnavailable, fetch_chart_data, fetch_map_info, load_raster, load_stations
from frontend.utils import DEM_RASTER_COLORS, PM25_RASTER_COLORS, STATUS_LABELS, filter_stations, raster_overlay, \
    stations_to_frame
from frontend.ui_elements import display_aqi_legend, display_chart, display_heat_index, display_map, \
    display_point_info, display_station_table

LAYERS = {"PM2.5": ("PM25", " µg/m³"), "Độ cao": ("DEM", " m")}
OVERLAY_PALETTES = {"PM25": (PM25_RASTER_COLORS, 0), "DEM": (DEM_RASTER_COLORS, None)}
NO_OVERLAY = "Không"


# load_* raise on failure, and st.cache_data does not cache exceptions
@st.cache_data(ttl = 600)
def load_day(day):
    return load_stations(day)


@st.cache_data(ttl = 3600)
def load_overlay(layer_name, day):
    content = load_raster(raster_filename(layer_name, day))
    table, floor = OVERLAY_PALETTES[layer_name]
    return raster_overlay(content, table, floor)


st.title("Bản đồ chất lượng không khí Việt Nam")

col1, col2 = st.columns([1, 3])
with col1:
    selected_day = st.date_input("Chọn ngày", get_local_today(), key = "day")
    selected_hour = st.slider("Giờ", 0, 23, pd.Timestamp.now().hour, format = "%02d:00", key = "hour")
    overlay_label = st.radio("Lớp bản đồ", [NO_OVERLAY] + list(LAYERS.keys()), key = "overlay")

try:
    stations = load_day(selected_day.isoformat())
except BackendUnavailable:
    st.warning("Không tải được dữ liệu trạm.")
    st.stop()

overlay = None
if overlay_label != NO_OVERLAY:
    try:
        overlay = load_overlay(LAYERS[overlay_label][0], selected_day.isoformat())
    except BackendUnavailable:
        with col1:
            st.info(f"Không có lớp {overlay_label} cho ngày này.")

station_df = stations_to_frame(stations, selected_hour)

with col2:
    display_map(station_df, overlay = overlay)

with col1:
    st.subheader("Mức AQI")
    display_aqi_legend()

with st.expander("Khuyến cáo sức khỏe"):
    st.subheader("Chỉ số nhiệt (Heat Index)")
    display_heat_index()
    st.markdown("**Nhóm người nhạy cảm:** trẻ em, người già và những người mắc bệnh hô hấp, tim mạch.")

# Station list
st.subheader("Danh sách trạm")
col1, col2 = st.columns([3, 1])
with col1:
    search_query = st.text_input("Tìm kiếm trạm", "")
with col2:
    status_options = {"Tất cả": "all", **{label: status for status, label in STATUS_LABELS.items()}}
    selected_status = st.selectbox("Trạng thái", list(status_options.keys()))
display_station_table(filter_stations(station_df, search_query, status_options[selected_status]))

# Point query
st.subheader("Thông tin tại điểm")
col1, col2, col3 = st.columns([2, 2, 2])
with col1:
    lat = st.number_input("Vĩ độ", min_value = -90.0, max_value = 90.0, value = 21.0285, format = "%.4f")
with col2:
    lng = st.number_input("Kinh độ", min_value = -180.0, max_value = 180.0, value = 105.8542, format = "%.4f")
with col3:
    default_layer = list(LAYERS.keys()).index(overlay_label) if overlay_label in LAYERS else 0
    layer_label = st.selectbox("Lớp dữ liệu", list(LAYERS.keys()), index = default_layer)

if st.button("Truy vấn"):
    layer_name, unit = LAYERS[layer_label]
    with st.spinner("Đang tải dữ liệu điểm..."):
        info = asyncio.run(fetch_map_info(lat, lng, selected_day, layer_name))
    display_point_info(info, layer_label, unit, lat, lng)

    if layer_name == "PM25":
        with st.spinner("Đang tải dữ liệu biểu đồ..."):
            chart_points = asyncio.run(fetch_chart_data(lat, lng, selected_day))
        display_chart(chart_points)
