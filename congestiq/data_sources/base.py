"""Interfaces and helpers for weather data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol


class WeatherDataSource(Protocol):
    """Interface for anything that can provide raw weather and air-pollution payloads."""

    def fetch_current_weather(
        self,
        latitude: float,
        longitude: float,
        *,
        api_key: str,
        units: str = "imperial",
        timeout: float = 10.0,
    ) -> Dict[str, Any]:
        """Return the provider's current-weather JSON."""
        ...

    def fetch_air_pollution(
        self,
        latitude: float,
        longitude: float,
        *,
        api_key: str,
        timeout: float = 10.0,
    ) -> Dict[str, Any]:
        """Return the provider's air-pollution JSON."""
        ...


@dataclass
class CallableWeatherDataSource(WeatherDataSource):
    """Wrap two callables so they can be swapped for different backends or test doubles."""

    current_weather: Callable[..., Dict[str, Any]]
    air_pollution: Callable[..., Dict[str, Any]]

    def fetch_current_weather(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured current-weather callable."""
        return self.current_weather(*args, **kwargs)

    def fetch_air_pollution(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured air-pollution callable."""
        return self.air_pollution(*args, **kwargs)
