# file: backend/config.py

import os
from dotenv import load_dotenv

load_dotenv()

OPEN_METEO_URL = os.getenv("OPEN_METEO_URL", "https://air-quality-api.open-meteo.com/v1/air-quality")
OPEN_METEO_TIMEZONE = os.getenv("OPEN_METEO_TIMEZONE", "Asia/Bangkok")

# Rasters are fetched over HTTP when RASTER_BASE_URL is set, otherwise read from RASTER_DIR
RASTER_BASE_URL = os.getenv("RASTER_BASE_URL") or None
RASTER_DIR = os.getenv("RASTER_DIR", "data/rasters")

GEOSERVER_WMS_URL = os.getenv("GEOSERVER_WMS_URL", "http://localhost:8080/geoserver/air_quality/wms")

GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "vn-air-dashboard/0.1")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
HTTP_RETRIES = int(os.getenv("HTTP_RETRIES", "2"))
HTTP_BACKOFF_SECONDS = float(os.getenv("HTTP_BACKOFF_SECONDS", "0.5"))

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()] or ["*"]
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8501")

# Validate environment variables
if HTTP_TIMEOUT_SECONDS <= 0 :
    raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")
if HTTP_RETRIES < 0 or HTTP_BACKOFF_SECONDS < 0 :
    raise ValueError("HTTP_RETRIES and HTTP_BACKOFF_SECONDS must not be negative")
