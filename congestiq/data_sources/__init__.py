"""Data source factories for plugging different weather backends."""

from .base import CallableWeatherDataSource, WeatherDataSource
from .factory import build_data_source
from .openweather_client import fetch_air_pollution, fetch_current_weather

__all__ = [
    "build_data_source",
    "WeatherDataSource",
    "CallableWeatherDataSource",
    "fetch_air_pollution",
    "fetch_current_weather",
]
