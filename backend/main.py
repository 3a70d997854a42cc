# file : backend/main.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import aiohttp
import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, StreamingResponse
from starlette.background import BackgroundTask

from backend.aggregation import build_chart_series
from backend.config import ALLOWED_ORIGINS, FRONTEND_URL
from backend.geocoding import reverse_geocode
from backend.geoserver import extract_gray_index, fetch_feature_info
from backend.http_client import UpstreamError, create_session
from backend.models import (ChartDataRequest, ChartPoint, FeatureInfoRequest, MapInfoRequest, MapInfoResponse,
                            StationsResponse)
from backend.open_meteo_api import fetch_stations_for_day
from backend.raster import is_known_raster_name, open_raster_stream, raster_filename, sample_raster
from backend.utils import parse_day

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


@asynccontextmanager
async def lifespan(app: FastAPI) :
    """Open the shared outbound HTTP session for the lifetime of the app."""
    app.state.http = create_session()
    yield
    await app.state.http.close()


app = FastAPI(
    title = "Vietnam Air Quality Dashboard",
    description = "Proxies Open-Meteo air quality, GeoTIFF rasters and GeoServer WMS for the dashboard.",
    version = "0.1",
    lifespan = lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logging.info(f"Rejected request to {request.url.path}: {exc.errors()}")
    messages = [f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})


def http_session(request: Request) -> aiohttp.ClientSession:
    return request.app.state.http


@app.get("/")
async def root():
    return RedirectResponse(FRONTEND_URL)


@app.get("/api/stations/{day}", response_model=StationsResponse)
async def stations(day: str, request: Request):
    """Daily rollup of every static station for the given YYYY-MM-DD date."""
    try:
        target = parse_day(day)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format. Expected YYYY-MM-DD")

    logging.info(f"Fetching stations for {target}")
    try:
        return {"stations": await fetch_stations_for_day(http_session(request), target)}
    except UpstreamError as e:
        logging.error(f"Error fetching Open-Meteo data: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch data from Open-Meteo")


@app.post("/api/map-info", response_model=MapInfoResponse)
async def map_info(body: MapInfoRequest, request: Request):
    """Raster value and place name at a clicked coordinate."""
    session = http_session(request)
    filename = raster_filename(body.layer_name, body.time)
    value, location_name = await asyncio.gather(
        sample_raster(session, body.lat, body.lng, filename),
        reverse_geocode(session, body.lat, body.lng),
    )
    return {"value": value, "locationName": location_name}


@app.post("/api/chart-data", response_model=List[ChartPoint])
async def chart_data(body: ChartDataRequest, request: Request):
    """Seven days of PM2.5 raster samples centered on the requested date."""
    session = http_session(request)

    async def lookup(day):
        return await sample_raster(session, body.lat, body.lng, raster_filename("PM25", day))

    return await build_chart_series(body.center_date, lookup)


async def _stream_raster(request: Request, filename: str):
    if not is_known_raster_name(filename):
        raise HTTPException(status_code=400, detail=f"Unknown raster file: {filename}")
    try:
        source = await open_raster_stream(http_session(request), filename)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logging.error(f"Error fetching raster {filename}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch raster")
    if source is None:
        raise HTTPException(status_code=404, detail=f"Raster not found: {filename}")
    if isinstance(source, aiohttp.ClientResponse):
        return StreamingResponse(source.content.iter_chunked(64 * 1024), media_type="image/tiff",
                                 background=BackgroundTask(source.release))
    return FileResponse(source, media_type="image/tiff", filename=filename)


@app.get("/api/raster-data")
async def raster_data(
    request: Request,
    date: Optional[str] = Query(None, description="PM2.5 raster date in YYYY-MM-DD format"),
    file_name: Optional[str] = Query(None, alias="file", description="Raster file name, e.g. DEM_VN_3km.tif"),
):
    """Stream a raw raster to the caller."""
    if (date is None) == (file_name is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of 'date' or 'file'")
    if date is not None:
        try:
            file_name = raster_filename("PM25", parse_day(date))
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date format. Expected YYYY-MM-DD")
    return await _stream_raster(request, file_name)


@app.get("/api/tiff-proxy/{filename}")
async def tiff_proxy(filename: str, request: Request):
    return await _stream_raster(request, filename)


@app.post("/api/wms/feature-info")
async def wms_feature_info(body: FeatureInfoRequest, request: Request):
    """GetFeatureInfo through GeoServer: the pixel value plus the raw GeoServer answer."""
    try:
        payload = await fetch_feature_info(http_session(request), body.layer_name, body.bbox, body.width,
                                           body.height, body.x, body.y, body.time)
    except UpstreamError as e:
        logging.error(f"Error in GetFeatureInfo: {e}")
        raise HTTPException(status_code=e.status or 500, detail="Failed to fetch from GeoServer")
    return {"value": extract_gray_index(payload), "raw": payload}


if __name__ == "__main__" :
    uvicorn.run(app, host = "0.0.0.0", port = 8000, log_level="info")
