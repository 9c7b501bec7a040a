"""
LLM Gateway — Claude API integration.

Single provider (Anthropic), non-streaming. Used only by the external
twin generator; callers treat an empty string as "no answer".
"""

from typing import Optional

import httpx
import structlog

from casecast.config import settings

logger = structlog.get_logger(__name__)

# Anthropic API constants
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class LLMGateway:
    """Gateway for the Claude Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.timeout = timeout or settings.external_generator_timeout_seconds
        self._transport = transport
        if not self.api_key:
            logger.warning("anthropic_api_key_missing", msg="External twin analysis will be unavailable")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def generate(
        self,
        system: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
    ) -> str:
        """
        Non-streaming generation.

        Returns the concatenated text blocks, or "" on any API or
        transport error (logged as llm_generate_error).
        """
        if not self.api_key:
            return ""

        model = model or settings.llm_model
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        payload = {
            "model": model,
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": [{"role": "user", "content": user_message}],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    ANTHROPIC_API_URL, json=payload, headers=headers
                )
                response.raise_for_status()
                data = response.json()

                # Extract text from content blocks
                content = data.get("content", [])
                text_parts = [
                    block.get("text", "")
                    for block in content
                    if block.get("type") == "text"
                ]
                return "".join(text_parts)

        except (httpx.HTTPError, ValueError) as e:
            logger.error("llm_generate_error", model=model, error=str(e))
            return ""
