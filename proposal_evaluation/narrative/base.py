"""Provider-agnostic narrative backend interface and data types."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict

import httpx

from ..errors import InvalidResponseError, NarrativeAPIError

logger = logging.getLogger(__name__)

# The evaluation timer bounds the whole call; these only guard dead sockets
PROVIDER_TIMEOUT = httpx.Timeout(connect=30.0, read=300.0, write=30.0, pool=30.0)

MAX_OUTPUT_TOKENS = 8192


@dataclass
class NarrativeRequest:
    """One narrative generation call."""
    system_prompt: str
    user_content: str
    model: str
    temperature: float = 0.0
    max_tokens: int = MAX_OUTPUT_TOKENS


@dataclass
class NarrativeResponse:
    """Raw text returned by a narrative backend."""
    content: str
    model_id: str
    provider: str
    duration_ms: int = 0


class NarrativeProvider(ABC):
    """Abstract base class for narrative backends."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openai, google, anthropic)."""

    @abstractmethod
    async def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        """Run one generation call.

        Raises:
            NarrativeAPIError: Non-success status or transport failure.
            InvalidResponseError: The response carried no text.
        """

    async def _post_json(
        self,
        url: str,
        headers: Dict[str, str],
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded body, logging the outcome."""
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=PROVIDER_TIMEOUT) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.TransportError as exc:
            logger.error(
                "narrative_call provider=%s result=failure error=%s duration_ms=%.0f",
                self.provider_name,
                exc,
                (time.monotonic() - start) * 1000,
            )
            raise NarrativeAPIError(self.provider_name, None, str(exc)) from exc

        duration_ms = (time.monotonic() - start) * 1000
        if response.status_code >= 400:
            logger.error(
                "narrative_call provider=%s status=%d result=failure duration_ms=%.0f body=%s",
                self.provider_name,
                response.status_code,
                duration_ms,
                response.text[:500],
            )
            raise NarrativeAPIError(self.provider_name, response.status_code, response.text)

        logger.info(
            "narrative_call provider=%s status=%d result=success duration_ms=%.0f",
            self.provider_name,
            response.status_code,
            duration_ms,
        )
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponseError(f"{self.provider_name} response body is not JSON") from exc
