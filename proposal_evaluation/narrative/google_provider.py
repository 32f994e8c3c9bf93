"""Google Gemini (AI Studio) narrative backend."""

import time

from ..errors import InvalidResponseError
from .base import NarrativeProvider, NarrativeRequest, NarrativeResponse

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


def api_version(model: str) -> str:
    """Newer Gemini models are only served on the beta API."""
    return "v1beta" if "gemini-3" in model else "v1"


class GoogleProvider(NarrativeProvider):
    """Narrative generation through the Gemini generateContent API."""

    @property
    def provider_name(self) -> str:
        return "google"

    async def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        start = time.monotonic()
        version = api_version(request.model)
        generation_config = {
            "temperature": request.temperature,
            "topK": 1,
            "topP": 0.95,
            "maxOutputTokens": request.max_tokens,
        }
        # v1 rejects responseMimeType
        if version == "v1beta":
            generation_config["responseMimeType"] = "application/json"

        body = await self._post_json(
            f"{GEMINI_BASE_URL}/{version}/models/{request.model}:generateContent",
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            payload={
                "contents": [
                    {
                        "role": "user",
                        "parts": [{"text": f"{request.system_prompt}\n\n{request.user_content}"}],
                    }
                ],
                "generationConfig": generation_config,
            },
        )
        try:
            content = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise InvalidResponseError("No content in AI response")

        return NarrativeResponse(
            content=content,
            model_id=request.model,
            provider=self.provider_name,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
