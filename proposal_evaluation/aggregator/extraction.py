"""Best-effort document text extraction before scoring."""

import logging
import time
from typing import List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from ..models import Proposal

logger = logging.getLogger(__name__)

# Proposals with less local text than this are sent for extraction
MIN_TEXT_LENGTH = 50

EXTRACTION_TIMEOUT = httpx.Timeout(connect=10.0, read=60.0, write=10.0, pool=10.0)


def extraction_retry():
    """Retry decorator for extraction calls: 2 attempts on transport errors only."""
    return retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class TextExtractionClient:
    """Calls the external extraction service for proposals lacking text.

    Failures never abort the run: the proposal falls back to its scope text.
    """

    def __init__(self, endpoint: str, api_key: str) -> None:
        self.endpoint = endpoint
        self._api_key = api_key

    @extraction_retry()
    async def extract(self, proposal_id: str) -> Optional[str]:
        """Ask the extraction service for a proposal's document text.

        Raises:
            httpx.HTTPError: On transport failure or non-success status.
        """
        async with httpx.AsyncClient(timeout=EXTRACTION_TIMEOUT) as client:
            response = await client.post(
                self.endpoint,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={"proposal_id": proposal_id},
            )
            response.raise_for_status()
            payload = response.json()
        text = payload.get("extracted_text") if isinstance(payload, dict) else None
        return text if isinstance(text, str) else None

    async def ensure_text(self, proposals: List[Proposal]) -> List[Proposal]:
        """Return proposals whose extracted text is filled in where possible.

        Args:
            proposals: Proposals of the run, in order.

        Returns:
            New proposal instances, same order; originals are not modified.
        """
        prepared = []
        for proposal in proposals:
            if len((proposal.extracted_text or "").strip()) >= MIN_TEXT_LENGTH:
                prepared.append(proposal)
                continue
            text = await self._safe_extract(proposal)
            prepared.append(
                proposal.model_copy(update={"extracted_text": text or proposal.scope_text or ""})
            )
        return prepared

    async def _safe_extract(self, proposal: Proposal) -> Optional[str]:
        start = time.monotonic()
        try:
            text = await self.extract(proposal.id)
        except (httpx.HTTPError, ValueError) as exc:
            duration_ms = (time.monotonic() - start) * 1000
            logger.warning(
                "extract_complete proposal=%s result=failure error=%s duration_ms=%.0f",
                proposal.id,
                exc,
                duration_ms,
            )
            return None
        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "extract_complete proposal=%s result=success chars=%d duration_ms=%.0f",
            proposal.id,
            len(text or ""),
            duration_ms,
        )
        return text
