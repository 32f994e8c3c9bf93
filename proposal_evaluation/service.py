"""Proposal evaluation service: one run from request to persisted result.

Order of a run:
- resolve the narrative backend, scoring weights and locale
- load and deduplicate inputs, run the policy precheck
- serve the cached result when every proposal is already evaluated
- fill in missing document text, score, lock ranks
- generate narrative under the time budget, validate, merge
- persist per-proposal results
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from .aggregator import InputAggregator, TextExtractionClient
from .config import Config, resolve_narrative_settings
from .config.config import PROVIDER_LABELS
from .database import ResultStore, SupabaseClient
from .errors import ConfigurationError, EvaluationError, InvalidRequestError
from .messages import MessageCatalog
from .models import (
    ErrorResponse,
    EvaluationFrame,
    EvaluationMetadata,
    EvaluationRequest,
    EvaluationResponse,
)
from .narrative import NarrativeClient
from .policy import run_precheck
from .ranking import lock_ranks
from .scorer import ScoringWeights, load_weights, score_proposals
from .validator import ResultMerger, build_batch_summary, validate_narrative

logger = logging.getLogger(__name__)

TIMEOUT_RETRY_AFTER_SECONDS = 60


class ProposalEvaluationService:
    """Evaluates and ranks the proposals of a project."""

    def __init__(
        self,
        config: Config,
        db=None,
        narrative_client: Optional[NarrativeClient] = None,
        extraction_client: Optional[TextExtractionClient] = None,
        weights: Optional[ScoringWeights] = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Loaded configuration, injected once for the whole run.
            db: Data access object (SupabaseClient built from config by default).
            narrative_client: Narrative client (built from config per run by default).
            extraction_client: Text extraction client (built from config by default).
            weights: Scoring weights (loaded from config by default).
        """
        self.config = config
        self.db = db or SupabaseClient(config.supabase_url, config.supabase_key)
        self.aggregator = InputAggregator(self.db)
        self.store = ResultStore(self.db)
        self.extraction = extraction_client or TextExtractionClient(
            config.extraction_endpoint, config.supabase_key
        )
        self._narrative_client = narrative_client
        self._weights = weights

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def evaluate(self, request: EvaluationRequest) -> EvaluationResponse:
        """Run one evaluation.

        Args:
            request: Validated evaluation request.

        Returns:
            EvaluationResponse, cached or freshly computed.

        Raises:
            EvaluationError: Any terminal failure, with its error code.
        """
        narrative_client = self._resolve_narrative_client()
        messages = self._resolve_messages()
        weights = self._resolve_weights()

        frame = self.aggregator.load(request)
        precheck = run_precheck(frame.proposals, frame.policy, frame.vendor_companies, messages)
        if precheck.violations:
            logger.info(
                "Precheck flagged %d violations across proposals %s",
                len(precheck.violations), precheck.flagged_ids,
            )

        if not request.force_reevaluate:
            cached = self._cached_response(frame, request)
            if cached is not None:
                return cached

        proposals = await self.extraction.ensure_text(frame.proposals)
        frame = frame.model_copy(update={"proposals": proposals})

        locked = lock_ranks(score_proposals(frame, precheck, weights, messages))

        start = time.monotonic()
        outcome = await narrative_client.evaluate(frame, locked)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        narrative = validate_narrative(outcome.data, frame.mode)
        response = ResultMerger(messages).merge(frame, locked, narrative, request.price_benchmark)

        provider_name = narrative_client.provider.provider_name
        metadata = EvaluationMetadata(
            model_used=outcome.response.model_id or narrative_client.model,
            provider=PROVIDER_LABELS.get(provider_name, provider_name),
            temperature=0,
            evaluation_time_ms=elapsed_ms,
        )
        self.store.save_results(response, metadata)

        logger.info(
            "Evaluation complete: project=%s mode=%s proposals=%d duration_ms=%d",
            frame.project.id, frame.mode, len(locked), elapsed_ms,
        )
        return response.model_copy(update={"evaluation_metadata": metadata})

    async def handle_request(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Evaluate a raw request payload and map the outcome to (status, body).

        Never raises: every failure becomes a structured error body.
        """
        try:
            request = EvaluationRequest.model_validate(payload)
        except ValidationError as exc:
            error = InvalidRequestError(_request_error_message(exc))
            return error.http_status, ErrorResponse(error=error.message, error_code=error.error_code).to_body()

        try:
            response = await self.evaluate(request)
        except EvaluationError as exc:
            logger.error(
                "Evaluation failed: project=%s code=%s status=%d error=%s",
                request.project_id, exc.error_code, exc.http_status, exc.message,
            )
            return exc.http_status, ErrorResponse(
                error=exc.message,
                error_code=exc.error_code,
                retry_after_seconds=TIMEOUT_RETRY_AFTER_SECONDS if exc.error_code == "TIMEOUT" else None,
            ).to_body()
        except Exception as exc:
            logger.error(f"Evaluation failed unexpectedly for project {request.project_id}: {exc}", exc_info=True)
            return 500, ErrorResponse(error=str(exc) or "Evaluation failed", error_code="EVALUATION_FAILED").to_body()

        return 200, response.to_body()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_narrative_client(self) -> NarrativeClient:
        if self._narrative_client is not None:
            return self._narrative_client
        return NarrativeClient.from_settings(resolve_narrative_settings(self.config))

    def _resolve_messages(self) -> MessageCatalog:
        try:
            return MessageCatalog(self.config.narrative_locale)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    def _resolve_weights(self) -> ScoringWeights:
        if self._weights is not None:
            return self._weights
        try:
            return load_weights(self.config.scoring_weights_file)
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Invalid scoring weights: {exc}") from exc

    def _cached_response(
        self,
        frame: EvaluationFrame,
        request: EvaluationRequest,
    ) -> Optional[EvaluationResponse]:
        ranked = self.store.load_cached(frame.proposal_ids)
        if ranked is None:
            return None
        try:
            return EvaluationResponse(
                project_id=frame.project.id,
                cached=True,
                batch_summary=build_batch_summary(frame, request.price_benchmark),
                ranked_proposals=ranked,
            )
        except ValidationError as exc:
            logger.warning(f"Cached results do not fit a {frame.mode} evaluation, re-evaluating: {exc.error_count()} errors")
            return None


def _request_error_message(exc: ValidationError) -> str:
    for error in exc.errors():
        if error.get("loc") == ("project_id",):
            return "project_id required"
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "request"
    return f"Invalid request: {field}: {first.get('msg')}"
