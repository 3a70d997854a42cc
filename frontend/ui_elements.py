#file: frontend/ui_elements.py

import streamlit as st
import pandas as pd
import plotly.express as px

from frontend.utils import AQI_LEVELS, HEAT_INDEX_LEVELS, STATUS_LABELS, heat_index_color, heat_index_frame, \
    pm25_recommendation


def display_map(station_df, center = None, overlay = None) :
    """Display a map with station markers colored by AQI level, optionally over a raster layer."""
    station_df = station_df.copy()
    station_df["size"] = 12
    station_df["aqi_text"] = station_df["aqi"].map(lambda v : "N/A" if pd.isna(v) else f"{v:.0f}")

    fig_map = px.scatter_mapbox(
        station_df,
        lat = "lat",
        lon = "lon",
        hover_name = "name",
        hover_data = {"aqi_text" : True, "pm25" : True, "level" : True, "lat" : False, "lon" : False, "size" : False},
        size = "size",
        color = "level",
        color_discrete_map = dict(zip(station_df["level"], station_df["color"])),
        zoom = 4.8,
        center = center or {"lat" : 16.46, "lon" : 107.59},
        height = 600,
        labels = {"aqi_text" : "AQI", "pm25" : "PM2.5", "level" : "Mức"},
    )
    fig_map.update_layout(
        mapbox_style = "open-street-map",
        margin = {
            "r" : 0,
            "t" : 0,
            "l" : 0,
            "b" : 0
        }
    )
    if overlay :
        fig_map.update_layout(mapbox_layers = [overlay])

    st.plotly_chart(fig_map, use_container_width = True)


def display_station_table(station_df) :
    if station_df.empty :
        st.info("Không tìm thấy trạm nào.")
        return
    table = station_df[["name", "address", "status", "aqi", "level", "pm25", "pm10", "last_update"]].copy()
    table["status"] = table["status"].map(STATUS_LABELS)
    table.columns = ["Trạm", "Địa chỉ", "Trạng thái", "AQI", "Mức", "PM2.5", "PM10", "Cập nhật"]
    st.dataframe(table, hide_index = True, use_container_width = True)


def display_point_info(info, label, unit, lat, lng) :
    """Show the sampled value, place name and PM2.5 advice for a queried point."""
    if not info :
        st.error("Lỗi khi lấy dữ liệu")
        return
    st.markdown(f"**Vị trí:** {info.get('locationName')} ({lat:.3f}, {lng:.3f})")
    value = info.get("value")
    st.markdown(f"**{label}:** " + (f"{value:.2f}{unit}" if value is not None else "Không có dữ liệu"))
    if label == "PM2.5" :
        recommendation = pm25_recommendation(value)
        if recommendation :
            st.markdown(f"**Khuyến cáo:** {recommendation}")


def display_chart(chart_points) :
    """Display the 7-day PM2.5 line chart."""
    if not chart_points :
        st.info("Không có dữ liệu biểu đồ.")
        return
    df = pd.DataFrame(chart_points)
    fig = px.line(df, x = "date", y = "value", markers = True, title = "Dữ liệu PM2.5 trong 7 ngày",
                  labels = {"date" : "Ngày", "value" : "PM2.5 (µg/m³)"})
    fig.update_traces(connectgaps = True)
    fig.update_layout(height = 300, margin = {"r" : 10, "t" : 40, "l" : 10, "b" : 10})
    st.plotly_chart(fig, use_container_width = True)


def display_aqi_legend() :
    lower = 0
    for upper, label, color in AQI_LEVELS :
        bound = f"{lower}-{upper}" if upper != float("inf") else f"> {lower}"
        st.markdown(f"<span style='color:{color}'>●</span> {label} ({bound})", unsafe_allow_html = True)
        lower = upper + 1 if upper != float("inf") else lower


def display_heat_index() :
    """Heat index lookup table colored by level, with the level legend."""
    table = heat_index_frame()
    styled = table.style.map(lambda v : f"background-color: {heat_index_color(v)}; color: white; font-weight: bold")
    st.dataframe(styled, use_container_width = True)
    for _, label, color, advice in HEAT_INDEX_LEVELS :
        st.markdown(f"<span style='background:{color};color:#fff;padding:2px 10px;border-radius:8px'>{label}</span> "
                    f"{advice}", unsafe_allow_html = True)
