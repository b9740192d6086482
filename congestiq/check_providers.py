# congestiq/check_providers.py
"""Startup checks for the credentials each provider needs."""

import sys
from typing import Any, Dict, Optional

from .config import Settings, settings as default_settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="check_providers")

# setting name -> environment variables that can supply it
REQUIRED_CREDENTIALS = {
    "openweather_api_key": ("CONGESTIQ_OPENWEATHER_API_KEY", "OPENWEATHER_API_KEY"),
    "ai_gateway_api_key": ("CONGESTIQ_AI_GATEWAY_API_KEY", "LOVABLE_API_KEY"),
}


def get_provider_status(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Non-fatal probe of provider configuration.

    Returns a dict like:
    {
      "ok": bool,
      "weather_configured": bool,
      "assistant_configured": bool,
      "missing": ["ai_gateway_api_key", ...],
    }

    This never calls a provider and never sys.exit()s.
    """
    settings = settings or default_settings
    missing = [name for name in REQUIRED_CREDENTIALS if not getattr(settings, name, None)]
    return {
        "ok": not missing,
        "weather_configured": "openweather_api_key" not in missing,
        "assistant_configured": "ai_gateway_api_key" not in missing,
        "missing": missing,
    }


def check_providers(settings: Optional[Settings] = None) -> None:
    """
    "Hard" check for startup: sys.exit(1) when any provider credential is missing.
    """
    status = get_provider_status(settings)
    if status["ok"]:
        logger.info("All provider credentials configured")
        return

    logger.error("Required provider credentials are not configured:")
    for name in status["missing"]:
        logger.error("   • %s (set one of: %s)", name, ", ".join(REQUIRED_CREDENTIALS[name]))
    sys.exit(1)
