"""Anthropic messages API narrative backend."""

import time

from ..errors import InvalidResponseError
from .base import NarrativeProvider, NarrativeRequest, NarrativeResponse

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(NarrativeProvider):
    """Narrative generation through the Anthropic messages API."""

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        start = time.monotonic()
        body = await self._post_json(
            ANTHROPIC_MESSAGES_URL,
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
            payload={
                "model": request.model,
                "system": request.system_prompt,
                "messages": [{"role": "user", "content": request.user_content}],
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )
        blocks = body.get("content") if isinstance(body, dict) else None
        content = "".join(
            block.get("text", "")
            for block in blocks or []
            if isinstance(block, dict) and block.get("type") == "text"
        )
        if not content:
            raise InvalidResponseError("No content in AI response")

        return NarrativeResponse(
            content=content,
            model_id=body.get("model") or request.model,
            provider=self.provider_name,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
