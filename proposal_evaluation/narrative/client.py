"""Narrative generation under a time budget.

The provider call and a timer run as two tasks; whichever finishes first
decides the outcome and the other is cancelled. A late narrative is never
used: on timeout the run fails.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from ..config import NarrativeSettings
from ..errors import ConfigurationError, InvalidResponseError, NarrativeTimeoutError
from ..messages import MessageCatalog
from ..models import EvaluationFrame, LockedScore
from .anthropic_provider import AnthropicProvider
from .base import NarrativeProvider, NarrativeRequest, NarrativeResponse
from .google_provider import GoogleProvider
from .openai_provider import OpenAIProvider
from .payload import build_context, render_context
from .prompts import system_instruction

logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[NarrativeProvider]] = {
    "openai": OpenAIProvider,
    "google": GoogleProvider,
    "anthropic": AnthropicProvider,
}

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def create_provider(settings: NarrativeSettings) -> NarrativeProvider:
    """Instantiate the provider named in the resolved settings."""
    try:
        provider_cls = PROVIDERS[settings.provider]
    except KeyError:
        raise ConfigurationError(f"Unsupported AI provider: {settings.provider}") from None
    return provider_cls(settings.api_key)


def strip_fences(text: str) -> str:
    """Remove a wrapping ``` or ```json fence, if any."""
    text = text.strip()
    text = _FENCE_START.sub("", text)
    return _FENCE_END.sub("", text).strip()


def parse_narrative(text: str) -> Any:
    """Parse response text as JSON.

    Raises:
        InvalidResponseError: Text is empty or not valid JSON.
    """
    cleaned = strip_fences(text or "")
    if not cleaned:
        raise InvalidResponseError("No content in AI response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InvalidResponseError(f"AI response is not valid JSON: {exc.msg}") from exc


@dataclass
class NarrativeOutcome:
    """Parsed narrative plus the raw provider response it came from."""
    data: Any
    response: NarrativeResponse


class NarrativeClient:
    """Sends the evaluation context to a narrative backend and parses the reply."""

    def __init__(
        self,
        provider: NarrativeProvider,
        model: str,
        timeout_seconds: float = 120.0,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.messages = messages or MessageCatalog()

    @classmethod
    def from_settings(cls, settings: NarrativeSettings) -> "NarrativeClient":
        return cls(
            provider=create_provider(settings),
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
            messages=MessageCatalog(settings.locale),
        )

    def build_request(self, frame: EvaluationFrame, locked: List[LockedScore]) -> NarrativeRequest:
        context = build_context(frame, locked, self.messages)
        return NarrativeRequest(
            system_prompt=system_instruction(frame.mode, self.messages),
            user_content=render_context(context),
            model=self.model,
        )

    async def evaluate(self, frame: EvaluationFrame, locked: List[LockedScore]) -> NarrativeOutcome:
        """Generate and parse the narrative for one batch.

        Args:
            frame: Evaluation frame of the run.
            locked: Locked scores, in rank order.

        Returns:
            NarrativeOutcome with the parsed JSON document.

        Raises:
            NarrativeTimeoutError: The budget ran out first.
            NarrativeAPIError: The backend failed.
            InvalidResponseError: The reply was empty or not JSON.
        """
        request = self.build_request(frame, locked)
        logger.info(
            "Requesting narrative: provider=%s model=%s mode=%s proposals=%d",
            self.provider.provider_name, self.model, frame.mode, len(locked),
        )
        response = await self._race(self.provider.generate(request))
        return NarrativeOutcome(data=parse_narrative(response.content), response=response)

    async def _race(self, call) -> NarrativeResponse:
        call_task = asyncio.ensure_future(call)
        timer_task = asyncio.ensure_future(asyncio.sleep(self.timeout_seconds))
        try:
            done, _ = await asyncio.wait(
                {call_task, timer_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (call_task, timer_task):
                if not task.done():
                    task.cancel()

        if call_task in done:
            return call_task.result()

        logger.error(
            "narrative_call provider=%s result=timeout budget_s=%.1f",
            self.provider.provider_name, self.timeout_seconds,
        )
        raise NarrativeTimeoutError(self.timeout_seconds)
