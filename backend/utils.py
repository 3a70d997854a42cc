#file: backend/utils.py

from datetime import date, datetime
import pytz

from backend.config import OPEN_METEO_TIMEZONE


def get_local_today() -> date:
    """Current calendar date in the timezone the hourly data is reported in."""
    return datetime.now(pytz.timezone(OPEN_METEO_TIMEZONE)).date()


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string, raising ValueError on anything else."""
    return datetime.strptime(value, "%Y-%m-%d").date()
