"""System-prompt assembly for the traffic assistant.

The prompt is an ordered list of fragments. Each fragment producer is a pure
function of one optional input and returns text, or None when it has nothing
to add; `build_system_prompt` joins whatever came back with blank lines.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from congestiq.domain import ConversationMessage, LocationContext, TimeOfDayBand, WeatherContext


BASE_INSTRUCTIONS = """You are CongestiQ AI, an intelligent traffic and navigation assistant. You provide real-time, helpful advice about:
- Traffic conditions and congestion
- Route optimization and alternatives
- Weather impacts on travel
- Estimated travel times
- Safety recommendations

You have access to real-time data and should provide specific, actionable advice."""

CLOSING_INSTRUCTIONS = (
    "Always be conversational, specific, and helpful. If you don't have specific data, "
    "provide general best-practice advice while being honest about limitations."
)

# Checked in order; only the first keyword found in the condition text fires.
WEATHER_ADVISORIES = (
    ("rain", "Weather Alert: Rain is affecting visibility and road conditions. "
             "Advise longer following distances and reduced speeds."),
    ("snow", "Weather Alert: Snow conditions present. Recommend extreme caution and allow extra travel time."),
    ("fog", "Weather Alert: Foggy conditions reducing visibility. Recommend using low beams and reduced speed."),
)

TIME_OF_DAY_ADVISORIES = {
    TimeOfDayBand.MORNING_RUSH: "Morning rush hour - expect heavy traffic on major routes.",
    TimeOfDayBand.EVENING_RUSH: "Evening rush hour - congestion likely on highways and main arteries.",
    TimeOfDayBand.OFF_PEAK: "Off-peak hours - light traffic expected.",
    TimeOfDayBand.MODERATE: "Moderate traffic levels expected.",
}

TEMPERATURE_SYMBOLS = {
    "imperial": "°F",
    "metric": "°C",
    "standard": "K",
}


def temperature_symbol(units: str) -> str:
    """Display symbol for an OpenWeather units setting."""
    return TEMPERATURE_SYMBOLS.get((units or "").lower(), "°F")


def time_of_day_band(hour: int) -> TimeOfDayBand:
    """Classify a 0-23 hour into its traffic band."""
    if 7 <= hour <= 9:
        return TimeOfDayBand.MORNING_RUSH
    if 16 <= hour <= 19:
        return TimeOfDayBand.EVENING_RUSH
    if hour >= 22 or hour <= 5:
        return TimeOfDayBand.OFF_PEAK
    return TimeOfDayBand.MODERATE


def base_instructions() -> str:
    return BASE_INSTRUCTIONS


def weather_advisory(condition: Optional[str]) -> Optional[str]:
    """Canned advisory for the first of rain/snow/fog found in `condition`."""
    text = (condition or "").lower()
    for keyword, advisory in WEATHER_ADVISORIES:
        if keyword in text:
            return advisory
    return None


def weather_fragment(weather: Optional[WeatherContext], *, temperature_unit: str = "°F") -> Optional[str]:
    """Current-weather facts plus at most one advisory sentence."""
    if weather is None:
        return None
    lines = [
        "Current Weather Conditions:",
        f"- Temperature: {_fmt(weather.temperature)}{temperature_unit}",
        f"- Condition: {_fmt(weather.condition)}",
        f"- Humidity: {_fmt(weather.humidity)}%",
    ]
    advisory = weather_advisory(weather.condition)
    if advisory:
        lines.append(advisory)
    return "\n".join(lines)


def location_fragment(location: Optional[LocationContext]) -> Optional[str]:
    """One-line location context; the resolved address wins over coordinates."""
    if location is None:
        return None
    where = location.address or f"{_fmt(location.lat)}, {_fmt(location.lng)}"
    return f"User Location: {where}"


def time_of_day_fragment(band: TimeOfDayBand) -> str:
    return f"Current Time Context: {TIME_OF_DAY_ADVISORIES[band]}"


def closing_instructions() -> str:
    return CLOSING_INSTRUCTIONS


def _fmt(value) -> str:
    """Render numbers without a trailing '.0' and missing values as 'unknown'."""
    if value is None:
        return "unknown"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_system_prompt(
    weather: Optional[WeatherContext],
    location: Optional[LocationContext],
    now: datetime,
    *,
    temperature_unit: str = "°F",
) -> str:
    """Assemble the full system prompt for one request."""
    producers: List[Callable[[], Optional[str]]] = [
        base_instructions,
        lambda: weather_fragment(weather, temperature_unit=temperature_unit),
        lambda: location_fragment(location),
        lambda: time_of_day_fragment(time_of_day_band(now.hour)),
        closing_instructions,
    ]
    fragments = [text for text in (produce() for produce in producers) if text]
    return "\n\n".join(fragments)


def build_chat_messages(system_prompt: str, history: Sequence[ConversationMessage]) -> list[dict]:
    """System message first, then the supplied history verbatim and in order."""
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": msg.role, "content": msg.content} for msg in history)
    return messages
