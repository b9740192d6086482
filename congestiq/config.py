"""Application configuration pulled from environment variables via pydantic."""
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the CongestiQ backend."""
    model_config = SettingsConfigDict(env_prefix="CONGESTIQ_", extra="ignore", populate_by_name=True)

    # Weather / air quality provider
    weather_source: str = "openweather"  # options: openweather
    openweather_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CONGESTIQ_OPENWEATHER_API_KEY", "OPENWEATHER_API_KEY"),
    )
    openweather_weather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    openweather_air_url: str = "https://api.openweathermap.org/data/2.5/air_pollution"
    openweather_units: str = "imperial"

    # Chat-completion gateway
    ai_gateway_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CONGESTIQ_AI_GATEWAY_API_KEY", "LOVABLE_API_KEY"),
    )
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    ai_model: str = "google/gemini-2.5-flash"
    ai_max_tokens: int = 1024
    ai_temperature: float = 0.7

    http_timeout_seconds: float = 10.0
    assistant_timezone: Optional[str] = None  # None -> server local clock
    cors_allow_origins: list[str] = ["*"]
    max_chat_messages: Optional[int] = None  # None -> no history cap

    @field_validator("openweather_weather_url", "openweather_air_url", "ai_gateway_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize URLs so query strings and paths join cleanly."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_api_key', 'ai_gateway_api_key'})}")
