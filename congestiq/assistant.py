"""
LLM-facing assistant orchestration: assembles a deterministic system prompt
from optional weather/location context and asks the gateway for a reply.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from .domain import ConversationMessage, LocationContext, WeatherContext
from .gateway_client import AIGatewayClient
from .prompt_context import build_chat_messages, build_system_prompt
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="assistant")

FALLBACK_REPLY = "I apologize, but I could not generate a response. Please try again."


class AssistantContextBuilder:
    """Build the augmented conversation and return the gateway's reply."""

    def __init__(
        self,
        client: AIGatewayClient,
        *,
        tz: Optional[ZoneInfo] = None,
        clock: Optional[Callable[[Optional[ZoneInfo]], datetime]] = None,
        temperature_unit: str = "°F",
    ):
        self.client = client
        self.tz = tz
        self.clock = clock or datetime.now
        self.temperature_unit = temperature_unit

    def system_prompt(
        self,
        weather: Optional[WeatherContext] = None,
        location: Optional[LocationContext] = None,
    ) -> str:
        """System prompt for the current wall-clock hour."""
        return build_system_prompt(weather, location, self.clock(self.tz), temperature_unit=self.temperature_unit)

    def generate_reply(
        self,
        history: Sequence[ConversationMessage],
        weather: Optional[WeatherContext] = None,
        location: Optional[LocationContext] = None,
    ) -> str:
        """Send [system] + history to the gateway; fall back to a fixed apology when it returns nothing."""
        messages = build_chat_messages(self.system_prompt(weather, location), history)
        logger.debug(
            "LLM prompt lengths (chars): system=%d total_msgs=%d",
            len(messages[0]["content"]),
            len(messages),
        )

        content = self.client.complete(messages)
        if not content or not content.strip():
            logger.warning("AI gateway returned no content; using fallback reply")
            return FALLBACK_REPLY

        logger.info("AI response generated successfully")
        return content
