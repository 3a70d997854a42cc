#file: backend/models.py

from datetime import date
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Literal, Optional


class EnvironmentalData(BaseModel):
    aqi: Optional[int] = Field(None, description="Daily peak US AQI")
    pm25: Optional[float] = Field(None, description="Daily mean PM2.5 (µg/m³)")
    pm10: Optional[float] = Field(None, description="Daily mean PM10 (µg/m³)")
    co: Optional[float] = Field(None, description="Daily mean CO (µg/m³)")
    no2: Optional[float] = Field(None, description="Daily mean NO2 (µg/m³)")
    so2: Optional[float] = Field(None, description="Daily mean SO2 (µg/m³)")
    o3: Optional[float] = Field(None, description="Daily mean O3 (µg/m³)")
    hourly: Optional[Dict[str, List[Any]]] = Field(None, description="Hourly series keyed by Open-Meteo variable name")


class Station(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique identifier of the station")
    name: str = Field(..., description="Display name of the station")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field("Vietnam", description="Address derived from the station name")
    status: Literal["active", "maintenance"] = Field(..., description="Derived from hourly AQI availability")
    last_update: str = Field(..., alias="lastUpdate")
    environmental_data: EnvironmentalData = Field(default_factory=EnvironmentalData, alias="environmentalData")


class StationsResponse(BaseModel):
    stations: List[Station]


class MapInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    time: Optional[date] = Field(None, description="Raster date in YYYY-MM-DD format")
    layer_name: Literal["PM25", "DEM"] = Field(..., alias="layerName")

    @model_validator(mode="after")
    def pm25_needs_date(self):
        if self.layer_name == "PM25" and self.time is None:
            raise ValueError("time is required for the PM25 layer")
        return self


class MapInfoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: Optional[float] = None
    location_name: str = Field(..., alias="locationName")


class ChartDataRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    center_date: date = Field(..., alias="centerDateStr")


class ChartPoint(BaseModel):
    date: str = Field(..., description="Day formatted as DD/MM")
    value: Optional[float] = None


class FeatureInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bbox: str = Field(..., description="minx,miny,maxx,maxy in EPSG:4326")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    layer_name: str = Field("air_quality:imagemosaic", alias="layerName")
    time: Optional[str] = None
