"""Merges locked deterministic scores with the validated narrative.

Numeric fields always come from the locked scores. The narrative only
contributes text, and missing text falls back to fixed sentinels.
"""

import logging
from statistics import mean
from typing import Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..errors import SchemaViolationError
from ..messages import MessageCatalog
from ..models import (
    BatchSummary,
    CompareAnalysis,
    EvaluationFrame,
    EvaluationResponse,
    Flags,
    LockedScore,
    Project,
    RankedProposal,
    SingleAnalysis,
)
from ..policy import resolve_vendor_name
from ..scorer.engine import valid_prices
from .schema import CompareNarrative, CompareNarrativeProposal, SingleNarrative, SingleNarrativeProposal

logger = logging.getLogger(__name__)

LARGE_SCALE_UNITS = 40
LARGE_SCALE_ADVISORS_BUDGET = 1_000_000

NarrativeProposal = Union[SingleNarrativeProposal, CompareNarrativeProposal]


def detect_project_scale(project: Project) -> str:
    """LARGE_SCALE by explicit flag, else by unit count or advisors budget."""
    if project.is_large_scale is not None:
        return "LARGE_SCALE" if project.is_large_scale else "STANDARD"
    if (project.units or 0) > LARGE_SCALE_UNITS:
        return "LARGE_SCALE"
    if (project.advisors_budget or 0) > LARGE_SCALE_ADVISORS_BUDGET:
        return "LARGE_SCALE"
    return "STANDARD"


def price_benchmark(frame: EvaluationFrame, requested: Optional[float] = None) -> Optional[float]:
    """Benchmark used for COMPARE runs: caller-supplied, else mean valid price."""
    if frame.mode == "SINGLE":
        return None
    if requested is not None:
        return requested
    prices = valid_prices(frame.proposals)
    return round(mean(prices), 2) if prices else None


def build_batch_summary(
    frame: EvaluationFrame,
    requested_benchmark: Optional[float] = None,
    market_context: Optional[str] = None,
) -> BatchSummary:
    return BatchSummary(
        total_proposals=len(frame.proposals),
        evaluation_mode=frame.mode,
        project_type_detected=detect_project_scale(frame.project),
        price_benchmark_used=price_benchmark(frame, requested_benchmark),
        market_context=market_context or None,
    )


def _dedupe(items: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for item in items:
        if item and item not in seen:
            seen[item] = None
    return list(seen)


class ResultMerger:
    """Produces the final ranked result from locked scores and narrative."""

    def __init__(self, messages: Optional[MessageCatalog] = None) -> None:
        self.messages = messages or MessageCatalog()

    def merge(
        self,
        frame: EvaluationFrame,
        locked: List[LockedScore],
        narrative: Union[SingleNarrative, CompareNarrative],
        requested_benchmark: Optional[float] = None,
    ) -> EvaluationResponse:
        """Merge narrative into the locked ranking.

        Args:
            frame: Evaluation frame of the run.
            locked: Locked scores in rank order.
            narrative: Validated narrative response.
            requested_benchmark: Caller-supplied price benchmark, if any.

        Returns:
            EvaluationResponse (not cached, without metadata).

        Raises:
            SchemaViolationError: The merged result breaks the result contract.
        """
        by_id: Dict[str, NarrativeProposal] = {}
        for item in narrative.ranked_proposals:
            by_id.setdefault(item.proposal_id, item)

        known = {score.proposal_id for score in locked}
        unknown = sorted(set(by_id) - known)
        if unknown:
            logger.warning(f"Ignoring narrative for unknown proposals: {unknown}")
        missing = sorted(known - set(by_id))
        if missing:
            logger.warning(f"Narrative omitted proposals {missing}, using defaults")

        proposals = {p.id: p for p in frame.proposals}
        try:
            ranked = [
                self._merge_one(score, proposals[score.proposal_id], by_id.get(score.proposal_id), frame)
                for score in locked
            ]
            return EvaluationResponse(
                project_id=frame.project.id,
                cached=False,
                batch_summary=build_batch_summary(
                    frame, requested_benchmark, narrative.batch_summary.market_context
                ),
                ranked_proposals=ranked,
            )
        except ValidationError as exc:
            raise SchemaViolationError(
                f"Merged result violates the result contract ({exc.error_count()} errors)",
                details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            ) from exc

    def _merge_one(
        self,
        score: LockedScore,
        proposal,
        from_model: Optional[NarrativeProposal],
        frame: EvaluationFrame,
    ) -> RankedProposal:
        model_flags = from_model.flags if from_model else None

        vendor_name = resolve_vendor_name(proposal, frame.vendor_companies)
        if not vendor_name and from_model and from_model.vendor_name:
            vendor_name = from_model.vendor_name.strip()

        knockout_reason = None
        if score.knockout_triggered:
            model_reason = (model_flags.knockout_reason or "").strip() if model_flags else ""
            knockout_reason = model_reason or score.knockout_reason_hint

        flags = Flags(
            red_flags=_dedupe([
                *score.policy_red_flags,
                *score.vendor_completeness_flags,
                *(model_flags.red_flags if model_flags else []),
            ]),
            green_flags=list(model_flags.green_flags) if model_flags else [],
            knockout_triggered=score.knockout_triggered,
            knockout_reason=knockout_reason,
        )

        analysis = from_model.individual_analysis if from_model else None
        fields = {
            "requirements_alignment": self._text(analysis and analysis.requirements_alignment),
            "timeline_assessment": self._text(analysis and analysis.timeline_assessment),
            "experience_assessment": self._text(analysis and analysis.experience_assessment),
            "scope_quality": self._text(analysis and analysis.scope_quality),
            "fee_structure_assessment": analysis.fee_structure_assessment if analysis else None,
            "payment_terms_assessment": analysis.payment_terms_assessment if analysis else None,
            "strengths": list(analysis.strengths) if analysis else [],
            "weaknesses": list(analysis.weaknesses) if analysis else [],
            "missing_requirements": self._missing_requirements(score, analysis),
            "extra_offerings": list(analysis.extra_offerings) if analysis else [],
        }

        if frame.mode == "SINGLE":
            individual_analysis = SingleAnalysis(**fields)
            comparative_notes = None
        else:
            individual_analysis = CompareAnalysis(
                **fields,
                price_assessment=self._text(analysis and analysis.price_assessment),
            )
            comparative_notes = from_model.comparative_notes if from_model else None

        return RankedProposal(
            proposal_id=score.proposal_id,
            vendor_name=vendor_name,
            final_score=score.final_score,
            rank=score.rank,
            data_completeness=score.data_completeness,
            recommendation_level=score.recommendation_level,
            flags=flags,
            individual_analysis=individual_analysis,
            comparative_notes=comparative_notes,
        )

    def _text(self, value: Optional[str]) -> str:
        if isinstance(value, str) and value.strip():
            return value
        return self.messages.not_provided

    def _missing_requirements(self, score: LockedScore, analysis) -> List[str]:
        if analysis is not None and analysis.missing_requirements is not None:
            return list(analysis.missing_requirements)
        sentinel = self.messages.none
        return [
            item
            for item in (*score.missing_fee_items, *score.missing_scope_items)
            if item != sentinel
        ]
