# file: backend/http_client.py

import asyncio
import logging
import ssl
from typing import Any, Dict, Optional

import aiohttp
import certifi

from backend.config import HTTP_BACKOFF_SECONDS, HTTP_RETRIES, HTTP_TIMEOUT_SECONDS

RETRY_STATUSES = {429, 500, 502, 503, 504}


class UpstreamError(Exception):
    """Raised when an external service is unreachable or answers with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def create_session() -> aiohttp.ClientSession:
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(ssl=ssl_context),
        timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS),
    )


async def _request(session: aiohttp.ClientSession, url: str, params: Optional[Dict[str, Any]],
                   headers: Optional[Dict[str, str]], as_json: bool, retries: int) -> Any:
    timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
    last_error: Optional[UpstreamError] = None
    for attempt in range(retries + 1):
        if attempt:
            await asyncio.sleep(HTTP_BACKOFF_SECONDS * 2 ** (attempt - 1))
        try:
            async with session.get(url, params=params, headers=headers, timeout=timeout) as response:
                if response.status in RETRY_STATUSES:
                    last_error = UpstreamError(f"HTTP {response.status} from {url}", response.status)
                    logging.warning(f"Attempt {attempt + 1} failed: {last_error}")
                    continue
                if response.status >= 400:
                    raise UpstreamError(f"HTTP {response.status} from {url}", response.status)
                if as_json:
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        # GeoServer answers exceptions as 200 XML reports
                        raise UpstreamError(f"Invalid JSON from {url}: {e}", response.status)
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            last_error = UpstreamError(f"Request to {url} failed: {e!r}")
            logging.warning(f"Attempt {attempt + 1} failed: {last_error}")
    raise last_error


async def get_json(session: aiohttp.ClientSession, url: str, params: Optional[Dict[str, Any]] = None,
                   headers: Optional[Dict[str, str]] = None, retries: int = HTTP_RETRIES) -> Any:
    """GET a JSON document with a per-call timeout and bounded retry on transient failures."""
    return await _request(session, url, params, headers, True, retries)


async def get_bytes(session: aiohttp.ClientSession, url: str, params: Optional[Dict[str, Any]] = None,
                    headers: Optional[Dict[str, str]] = None, retries: int = HTTP_RETRIES) -> bytes:
    """GET a binary resource with a per-call timeout and bounded retry on transient failures."""
    return await _request(session, url, params, headers, False, retries)
