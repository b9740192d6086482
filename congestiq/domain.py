"""Domain vocabulary and wire schemas for the weather and assistant handlers.

Field names follow the JSON the dashboard already consumes (``feels_like``,
``airQuality``, ``trafficImpact``), so Python attribute names and wire keys
differ only where an alias is declared.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


AQI_LABELS = {
    1: "Good",
    2: "Fair",
    3: "Moderate",
    4: "Poor",
    5: "Very Poor",
}


class _WireModel(BaseModel):
    """Base model that accepts both field names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True)


class TimeOfDayBand(str, Enum):
    """Traffic band derived from the wall-clock hour."""
    MORNING_RUSH = "morning-rush"
    EVENING_RUSH = "evening-rush"
    OFF_PEAK = "off-peak"
    MODERATE = "moderate"


class WeatherObservation(_WireModel):
    """Current weather at a coordinate, rounded for display."""
    temp: int
    feels_like: int
    humidity: int
    description: str
    icon: str = "01d"
    wind_speed: int
    visibility: int  # miles
    city: str


class AirQualitySample(_WireModel):
    """First air-pollution sample returned by the provider."""
    aqi: int = 1
    pm25: float = 0
    pm10: float = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        return AQI_LABELS.get(self.aqi, "Unknown")


class TrafficImpact(_WireModel):
    """Traffic-impact tier derived solely from the weather condition code."""
    description: str
    level: int = Field(ge=0, le=3)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def affects_travel(self) -> bool:
        return self.level > 0


class TrafficImpactResult(_WireModel):
    """Payload returned by the weather endpoint."""
    weather: WeatherObservation
    air_quality: Optional[AirQualitySample] = Field(default=None, alias="airQuality")
    traffic_impact: TrafficImpact = Field(alias="trafficImpact")


class ConversationMessage(_WireModel):
    """One turn of dialogue history; order is significant."""
    role: Literal["user", "assistant", "system"]
    content: str


class WeatherContext(_WireModel):
    """Optional weather facts the dashboard attaches to a chat request."""
    temperature: Optional[float] = None
    condition: Optional[str] = None
    humidity: Optional[float] = None


class LocationContext(_WireModel):
    """Optional user location; a resolved address wins over raw coordinates."""
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


class WeatherRequest(_WireModel):
    """Body of ``POST /get-weather``."""
    lat: float
    lon: float


class ChatRequest(_WireModel):
    """Body of ``POST /ai-chat``."""
    messages: List[ConversationMessage]
    weather_context: Optional[WeatherContext] = Field(default=None, alias="weatherContext")
    location_context: Optional[LocationContext] = Field(default=None, alias="locationContext")
    user_id: Optional[str] = Field(default=None, alias="userId")


class ChatResponse(_WireModel):
    """Successful assistant reply."""
    message: str
    success: bool = True


class ErrorResponse(_WireModel):
    """Error body; ``success`` is only present on the chat endpoint."""
    error: str
    success: Optional[bool] = None


class HealthResponse(_WireModel):
    """Provider configuration status; never calls out to a provider."""
    ok: bool
    weather_configured: bool
    assistant_configured: bool
