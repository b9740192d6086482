"""Helpers for fetching current weather and air pollution from OpenWeather."""
from __future__ import annotations

from typing import Any, Dict

import requests

from congestiq.errors import UpstreamFetchError
from utils.logging_utils import get_tagged_logger, mask_url
logger = get_tagged_logger(__name__, tag="openweather_client")

session = requests.Session()

OPENWEATHER_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_AIR_URL = "https://api.openweathermap.org/data/2.5/air_pollution"
DEFAULT_TIMEOUT_SEC = 10.0


def _get_json(url: str, params: Dict[str, Any], *, timeout: float, context: str) -> Dict[str, Any]:
    """GET a provider endpoint and decode its JSON, raising UpstreamFetchError on any failure."""
    try:
        resp = session.get(url, params=params, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        logger.error("OpenWeather %s request failed: %s", context, type(exc).__name__)
        raise UpstreamFetchError(f"OpenWeather {context} request failed") from exc

    if not 200 <= resp.status_code < 300:
        # The body can echo the request (including appid); log only the status.
        logger.error(
            "OpenWeather %s returned HTTP %s for %s",
            context,
            resp.status_code,
            mask_url(str(getattr(resp, "url", url))),
        )
        raise UpstreamFetchError(
            f"OpenWeather {context} returned status {resp.status_code}",
            status=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as exc:
        logger.error("OpenWeather %s returned a non-JSON body", context)
        raise UpstreamFetchError(f"OpenWeather {context} returned non-JSON body") from exc

    if not isinstance(data, dict):
        raise UpstreamFetchError(f"OpenWeather {context} returned unexpected payload type {type(data).__name__}")
    return data


def fetch_current_weather(
    latitude: float,
    longitude: float,
    *,
    api_key: str,
    units: str = "imperial",
    timeout: float = DEFAULT_TIMEOUT_SEC,
    url: str = OPENWEATHER_WEATHER_URL,
) -> Dict[str, Any]:
    """Fetch the current weather observation for the given coordinates."""
    params = {
        "lat": latitude,
        "lon": longitude,
        "appid": api_key,
        "units": units,
    }
    return _get_json(url, params, timeout=timeout, context="weather")


def fetch_air_pollution(
    latitude: float,
    longitude: float,
    *,
    api_key: str,
    timeout: float = DEFAULT_TIMEOUT_SEC,
    url: str = OPENWEATHER_AIR_URL,
) -> Dict[str, Any]:
    """Fetch the current air-pollution sample list for the given coordinates."""
    params = {
        "lat": latitude,
        "lon": longitude,
        "appid": api_key,
    }
    return _get_json(url, params, timeout=timeout, context="air_pollution")
