"""HTTP API for the weather-impact and traffic-assistant handlers.

Both handlers convert every failure into a JSON error body at their own
boundary; nothing propagates to the ASGI server.
"""

from typing import Any, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .assistant import AssistantContextBuilder
from .check_providers import get_provider_status
from .config import settings
from .data_sources import build_data_source
from .domain import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, TrafficImpactResult, WeatherRequest
from .errors import ConfigurationError, InternalError, InvalidInputError, UpstreamFetchError
from .gateway_client import AIGatewayClient
from .prompt_context import temperature_symbol
from .weather_service import WeatherImpactService
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="congestiq/api")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

WEATHER_FAILURE_MESSAGE = "Failed to fetch weather data"
CHAT_FAILURE_MESSAGE = "Failed to generate assistant reply"
COORDINATES_REQUIRED_MESSAGE = "Latitude and longitude are required"

router = APIRouter()
DATA_SOURCE = build_data_source(settings)


def build_weather_service() -> WeatherImpactService:
    """Construct the weather service from current settings; raises ConfigurationError without a key."""
    return WeatherImpactService.from_settings(settings, DATA_SOURCE)


def build_assistant() -> AssistantContextBuilder:
    """Construct the assistant from current settings; raises ConfigurationError without a key."""
    client = AIGatewayClient.from_settings(settings)
    tz = None
    if settings.assistant_timezone:
        try:
            tz = ZoneInfo(settings.assistant_timezone)
        except ZoneInfoNotFoundError as exc:
            raise ConfigurationError(f"Invalid assistant timezone: {settings.assistant_timezone}") from exc
    return AssistantContextBuilder(client, tz=tz, temperature_unit=temperature_symbol(settings.openweather_units))


def _json(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


async def _read_json(request: Request) -> Any:
    """Decode the request body, treating anything unparseable as client error."""
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidInputError("Request body is not valid JSON", public_message="Invalid JSON body") from exc


def _parse_coordinates(body: Any) -> Tuple[float, float]:
    """Extract (lat, lon); both must be present JSON numbers. Numeric strings are rejected; zero is valid."""
    if not isinstance(body, dict):
        raise InvalidInputError("Weather request body must be an object", public_message=COORDINATES_REQUIRED_MESSAGE)
    lat, lon = body.get("lat"), body.get("lon")
    if lat is None or lon is None or isinstance(lat, bool) or isinstance(lon, bool):
        raise InvalidInputError("Missing lat/lon", public_message=COORDINATES_REQUIRED_MESSAGE)
    try:
        req = WeatherRequest.model_validate({"lat": lat, "lon": lon}, strict=True)
    except ValidationError as exc:
        raise InvalidInputError("Non-numeric lat/lon", public_message=COORDINATES_REQUIRED_MESSAGE) from exc
    return req.lat, req.lon


def _parse_chat_request(body: Any) -> ChatRequest:
    """Validate the chat body and enforce the optional history length cap."""
    if not isinstance(body, dict):
        raise InvalidInputError("Chat request body must be an object", public_message="Invalid chat request")
    try:
        req = ChatRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid chat request: {exc.error_count()} errors",
                                public_message="Invalid chat request") from exc
    limit = settings.max_chat_messages
    if limit is not None and len(req.messages) > limit:
        raise InvalidInputError(
            f"Too many messages: {len(req.messages)}",
            public_message=f"Too many messages; limit {limit}.",
        )
    return req


def _masked_user(user_id: str | None) -> str | None:
    """First eight characters of a user id, enough to correlate logs."""
    return f"{user_id[:8]}..." if user_id else None


@router.options("/get-weather")
@router.options("/ai-chat")
def preflight():
    """Answer CORS preflight requests that reach the router."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    "/get-weather",
    response_model=TrafficImpactResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_weather(request: Request):
    """Current weather, air quality and traffic impact for a coordinate."""
    try:
        service = build_weather_service()
        lat, lon = _parse_coordinates(await _read_json(request))
        result = await run_in_threadpool(service.assess_conditions, lat, lon)
    except ConfigurationError as exc:
        logger.error("Weather handler misconfigured: %s", exc)
        return _json({"error": exc.public_message}, status_code=exc.status_code)
    except InvalidInputError as exc:
        logger.info("Rejected weather request: %s", exc)
        return _json({"error": exc.public_message}, status_code=exc.status_code)
    except UpstreamFetchError as exc:
        logger.error("Error fetching weather: %s", exc)
        return _json({"error": WEATHER_FAILURE_MESSAGE}, status_code=500)
    except Exception:
        logger.exception("Unexpected error in weather handler")
        return _json({"error": WEATHER_FAILURE_MESSAGE}, status_code=500)

    return _json(result.model_dump(by_alias=True))


@router.post(
    "/ai-chat",
    response_model=ChatResponse,
    responses={500: {"model": ErrorResponse}},
)
async def ai_chat(request: Request):
    """Traffic-assistant reply for a conversation plus optional weather/location context."""
    try:
        assistant = build_assistant()
        req = _parse_chat_request(await _read_json(request))
        logger.info(
            "AI Chat request: messageCount=%d hasWeather=%s hasLocation=%s userId=%s",
            len(req.messages),
            req.weather_context is not None,
            req.location_context is not None,
            _masked_user(req.user_id),
        )
        reply = await run_in_threadpool(
            assistant.generate_reply, req.messages, req.weather_context, req.location_context
        )
    except (ConfigurationError, InvalidInputError) as exc:
        logger.error("AI Chat error: %s", exc)
        return _json({"error": exc.public_message, "success": False}, status_code=500)
    except UpstreamFetchError as exc:
        logger.error("AI Chat error: %s", exc)
        return _json({"error": CHAT_FAILURE_MESSAGE, "success": False}, status_code=500)
    except Exception:
        logger.exception("Unexpected error in chat handler")
        return _json({"error": InternalError.public_message, "success": False}, status_code=500)

    return _json(ChatResponse(message=reply).model_dump())


@router.get("/health", response_model=HealthResponse)
def health():
    """Which providers are configured; never calls out."""
    status = get_provider_status(settings)
    return HealthResponse(
        ok=status["ok"],
        weather_configured=status["weather_configured"],
        assistant_configured=status["assistant_configured"],
    )
