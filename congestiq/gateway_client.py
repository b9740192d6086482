"""Thin client for the OpenAI-style chat-completions gateway."""

from typing import Optional

import requests

from .errors import ConfigurationError, UpstreamFetchError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="gateway_client")


class AIGatewayClient:
    """Minimal client for a hosted chat-completion endpoint. No retries.

    Endpoint and sampling parameters have no defaults here; `from_settings`
    supplies them from `congestiq.config.Settings`.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        url: str,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
    ):
        if not api_key:
            raise ConfigurationError(
                "AI gateway API key not configured",
                public_message="AI gateway API key not configured",
            )
        self.api_key = api_key
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "AIGatewayClient":
        """Construct the client from a Settings object."""
        return cls(
            settings.ai_gateway_api_key,
            url=settings.ai_gateway_url,
            model=settings.ai_model,
            max_tokens=settings.ai_max_tokens,
            temperature=settings.ai_temperature,
            timeout=settings.http_timeout_seconds,
        )

    def complete(self, messages: list[dict]) -> Optional[str]:
        """Send one chat-completion request and return the first choice's content, if any."""
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.info("Sending to AI gateway with %d messages", len(messages))
        try:
            r = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("AI gateway POST failed: %s", type(exc).__name__)
            raise UpstreamFetchError("AI gateway request failed") from exc

        if not 200 <= r.status_code < 300:
            logger.error("AI gateway error %s: %s", r.status_code, (r.text or "")[:200])
            raise UpstreamFetchError(f"AI gateway error: {r.status_code}", status=r.status_code)

        try:
            data = r.json()
        except ValueError as exc:
            raise UpstreamFetchError(f"AI gateway returned non-JSON response: {(r.text or '')[:200]}") from exc

        return _first_choice_content(data)


def _first_choice_content(data) -> Optional[str]:
    """Return choices[0].message.content, or None when any level is missing."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    # Normalize non-string content to string
    if content is not None and not isinstance(content, str):
        content = str(content)
    return content
