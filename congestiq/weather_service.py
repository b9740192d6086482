"""Turn raw OpenWeather payloads into a traffic-impact assessment."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from congestiq.data_sources import WeatherDataSource, build_data_source
from congestiq.domain import AirQualitySample, TrafficImpactResult, WeatherObservation
from congestiq.errors import ConfigurationError, UpstreamFetchError
from congestiq.impact import DEFAULT_CONDITION_CODE, classify_impact, round_half_up, visibility_miles
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="weather_service")


def _first(items: Any) -> Optional[Dict[str, Any]]:
    """Return the first mapping of a provider list, or None."""
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _section(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def condition_code(weather_data: Mapping[str, Any]) -> int:
    """Primary condition code of a weather payload, 800 (clear) when absent."""
    code = (_first(weather_data.get("weather")) or {}).get("id")
    return int(code) if code else DEFAULT_CONDITION_CODE


def parse_weather_observation(weather_data: Mapping[str, Any]) -> WeatherObservation:
    """Build a rounded WeatherObservation from a current-weather payload."""
    main = _section(weather_data, "main")
    wind = _section(weather_data, "wind")
    primary = _first(weather_data.get("weather")) or {}

    return WeatherObservation(
        temp=round_half_up(main.get("temp") or 0),
        feels_like=round_half_up(main.get("feels_like") or 0),
        humidity=round_half_up(main.get("humidity") or 0),
        description=primary.get("description") or "Unknown",
        icon=primary.get("icon") or "01d",
        wind_speed=round_half_up(wind.get("speed") or 0),
        visibility=visibility_miles(weather_data.get("visibility")),
        city=weather_data.get("name") or "Unknown",
    )


def parse_air_quality(air_data: Mapping[str, Any]) -> Optional[AirQualitySample]:
    """Build an AirQualitySample from the first entry of an air-pollution payload."""
    sample = _first(air_data.get("list"))
    if sample is None:
        return None
    components = _section(sample, "components")
    return AirQualitySample(
        aqi=_section(sample, "main").get("aqi") or 1,
        pm25=components.get("pm2_5") or 0,
        pm10=components.get("pm10") or 0,
    )


class WeatherImpactService:
    """Fetch weather and air quality for a coordinate and classify its traffic impact.

    Stateless apart from injected configuration; one instance can serve any
    number of concurrent requests.
    """

    def __init__(
        self,
        api_key: Optional[str],
        data_source: Optional[WeatherDataSource] = None,
        *,
        units: str = "imperial",
        timeout: float = 10.0,
    ):
        if not api_key:
            raise ConfigurationError(
                "OpenWeather API key not configured",
                public_message="OpenWeather API key not configured",
            )
        self.api_key = api_key
        self.data_source = data_source or build_data_source()
        self.units = units
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings, data_source: Optional[WeatherDataSource] = None) -> "WeatherImpactService":
        """Construct the service from a Settings object."""
        return cls(
            settings.openweather_api_key,
            data_source or build_data_source(settings),
            units=settings.openweather_units,
            timeout=settings.http_timeout_seconds,
        )

    def assess_conditions(self, lat: float, lon: float) -> TrafficImpactResult:
        """Return weather, optional air quality and the traffic-impact tier for (lat, lon).

        Raises UpstreamFetchError when the weather fetch fails; the air-quality
        fetch is then never attempted.
        """
        weather_data = self.data_source.fetch_current_weather(
            lat, lon, api_key=self.api_key, units=self.units, timeout=self.timeout
        )
        weather = parse_weather_observation(weather_data)
        air_quality = self._fetch_air_quality(lat, lon)
        code = condition_code(weather_data)
        impact = classify_impact(code)

        logger.info(
            "Assessed conditions for %s: code=%s impact=%s aqi=%s",
            weather.city,
            code,
            impact.level,
            air_quality.aqi if air_quality else None,
        )
        return TrafficImpactResult(weather=weather, air_quality=air_quality, traffic_impact=impact)

    def _fetch_air_quality(self, lat: float, lon: float) -> Optional[AirQualitySample]:
        """Best-effort air-quality lookup; an upstream failure or malformed payload yields None."""
        try:
            air_data = self.data_source.fetch_air_pollution(lat, lon, api_key=self.api_key, timeout=self.timeout)
            return parse_air_quality(air_data)
        except UpstreamFetchError as exc:
            logger.warning("Air quality unavailable; continuing without it: %s", exc)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Malformed air quality payload; continuing without it: %s", exc)
        return None
