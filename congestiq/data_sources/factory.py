"""Factory helpers for choosing a weather data source at startup."""

from __future__ import annotations

from functools import partial

from congestiq import config
from congestiq.data_sources.base import CallableWeatherDataSource, WeatherDataSource
from congestiq.data_sources.openweather_client import fetch_air_pollution, fetch_current_weather
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "openweather"


def build_data_source(settings: config.Settings | None = None) -> WeatherDataSource:
    """Instantiate the configured weather data source."""
    settings = settings or config.settings
    source = (settings.weather_source or DEFAULT_SOURCE_NAME).lower()

    if source == "openweather":
        logger.debug("Using OpenWeather data source")
        return CallableWeatherDataSource(
            current_weather=partial(fetch_current_weather, url=settings.openweather_weather_url),
            air_pollution=partial(fetch_air_pollution, url=settings.openweather_air_url),
        )

    raise ValueError(f"Unknown weather source '{source}'")
