"""Contract for the raw narrative response.

The response is a tagged union keyed by ``batch_summary.evaluation_mode``.
Anything that does not fit the shape for its mode is rejected, never coerced.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from ..errors import SchemaViolationError
from ..models import EvaluationMode


class NarrativeFlags(BaseModel):
    red_flags: List[str] = Field(default_factory=list)
    green_flags: List[str] = Field(default_factory=list)
    knockout_reason: Optional[str] = None


class _NarrativeAnalysis(BaseModel):
    requirements_alignment: str
    timeline_assessment: str
    experience_assessment: str
    scope_quality: str
    fee_structure_assessment: Optional[str] = None
    payment_terms_assessment: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    missing_requirements: Optional[List[str]] = None
    extra_offerings: List[str] = Field(default_factory=list)


class SingleNarrativeAnalysis(_NarrativeAnalysis):
    @model_validator(mode="before")
    @classmethod
    def no_price_narrative(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("price_assessment") is not None:
            raise ValueError("price_assessment is not allowed in SINGLE evaluations")
        return data


class CompareNarrativeAnalysis(_NarrativeAnalysis):
    price_assessment: str


class SingleNarrativeProposal(BaseModel):
    proposal_id: str
    vendor_name: Optional[str] = None
    flags: NarrativeFlags = Field(default_factory=NarrativeFlags)
    individual_analysis: SingleNarrativeAnalysis


class CompareNarrativeProposal(BaseModel):
    proposal_id: str
    vendor_name: Optional[str] = None
    flags: NarrativeFlags = Field(default_factory=NarrativeFlags)
    individual_analysis: CompareNarrativeAnalysis
    comparative_notes: Optional[str] = None


class SingleNarrativeSummary(BaseModel):
    evaluation_mode: Literal["SINGLE"]
    price_benchmark_used: None = None
    market_context: Optional[str] = None


class CompareNarrativeSummary(BaseModel):
    evaluation_mode: Literal["COMPARE"]
    price_benchmark_used: Optional[float] = Field(None, gt=0)
    market_context: Optional[str] = None


class SingleNarrative(BaseModel):
    batch_summary: SingleNarrativeSummary
    ranked_proposals: List[SingleNarrativeProposal] = Field(..., min_length=1)


class CompareNarrative(BaseModel):
    batch_summary: CompareNarrativeSummary
    ranked_proposals: List[CompareNarrativeProposal] = Field(..., min_length=1)


def _evaluation_mode(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        summary = value.get("batch_summary")
        return summary.get("evaluation_mode") if isinstance(summary, dict) else None
    summary = getattr(value, "batch_summary", None)
    return getattr(summary, "evaluation_mode", None)


Narrative = Annotated[
    Union[
        Annotated[SingleNarrative, Tag("SINGLE")],
        Annotated[CompareNarrative, Tag("COMPARE")],
    ],
    Discriminator(_evaluation_mode),
]

NARRATIVE_ADAPTER: TypeAdapter = TypeAdapter(Narrative)


def validate_narrative(raw: Any, expected_mode: EvaluationMode) -> Union[SingleNarrative, CompareNarrative]:
    """Validate a parsed narrative response against the contract for its mode.

    Args:
        raw: Parsed JSON from the narrative backend.
        expected_mode: Mode the deterministic scorer ran in.

    Returns:
        SingleNarrative or CompareNarrative.

    Raises:
        SchemaViolationError: Shape violation or a mode other than expected.
    """
    try:
        narrative = NARRATIVE_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise SchemaViolationError(
            f"AI response violates the result contract ({exc.error_count()} errors)",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc

    if narrative.batch_summary.evaluation_mode != expected_mode:
        raise SchemaViolationError(
            f"AI response is tagged {narrative.batch_summary.evaluation_mode}, "
            f"expected {expected_mode}"
        )
    return narrative
