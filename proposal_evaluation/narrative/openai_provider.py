"""OpenAI chat-completions narrative backend."""

import time

from ..errors import InvalidResponseError
from .base import NarrativeProvider, NarrativeRequest, NarrativeResponse

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIProvider(NarrativeProvider):
    """Narrative generation through OpenAI chat completions in JSON mode."""

    @property
    def provider_name(self) -> str:
        return "openai"

    async def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        start = time.monotonic()
        body = await self._post_json(
            OPENAI_CHAT_URL,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            payload={
                "model": request.model,
                "messages": [
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.user_content},
                ],
                "temperature": request.temperature,
                "response_format": {"type": "json_object"},
                "max_tokens": request.max_tokens,
            },
        )
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise InvalidResponseError("No content in AI response")

        return NarrativeResponse(
            content=content,
            model_id=body.get("model") or request.model,
            provider=self.provider_name,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
