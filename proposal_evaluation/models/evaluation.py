"""Evaluation frame, locked scores and the result contract.

Shared contract between the aggregator, scorer, validator and result store.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .project import OrganizationPolicy, Project, Proposal, RFPInvite, VendorCompany


EvaluationMode = Literal["SINGLE", "COMPARE"]
ViolationType = Literal["CURRENCY", "PAYMENT_TERMS", "VENDOR_INCOMPLETE"]
ProjectScale = Literal["STANDARD", "LARGE_SCALE"]
RecommendationLevel = Literal[
    "Highly Recommended",
    "Recommended",
    "Review Required",
    "Not Recommended",
]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class EvaluationRequest(BaseModel):
    """Request to evaluate the proposals of one project."""

    project_id: str
    proposal_ids: Optional[list[str]] = None
    force_reevaluate: bool = False
    price_benchmark: Optional[float] = Field(None, gt=0)

    @field_validator("project_id")
    @classmethod
    def project_id_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("project_id required")
        return v

    @field_validator("proposal_ids")
    @classmethod
    def drop_blank_ids(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return None
        ids = [pid.strip() for pid in v if pid and pid.strip()]
        return ids or None


class EvaluationFrame(BaseModel):
    """Everything one evaluation run reads, after deduplication.

    ``proposals`` are ordered by id and each carries its resolved advisor and
    invite. ``invite`` is the shared invite whose fee and scope items every
    proposal is measured against.
    """

    project: Project
    proposals: list[Proposal]
    invite: RFPInvite
    policy: Optional[OrganizationPolicy] = None
    vendor_companies: dict[str, VendorCompany] = Field(default_factory=dict)

    @property
    def mode(self) -> EvaluationMode:
        return "SINGLE" if len(self.proposals) == 1 else "COMPARE"

    @property
    def proposal_ids(self) -> list[str]:
        return [p.id for p in self.proposals]


class PolicyViolation(BaseModel):
    """Organizational policy breach detected before scoring."""

    proposal_id: str
    type: ViolationType
    message: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Deterministic scores
# ---------------------------------------------------------------------------


class DeterministicScore(BaseModel):
    """Per-proposal numeric scores, computed once per run and never mutated."""

    proposal_id: str
    coverage_score: int = Field(..., ge=0, le=100)
    price_score: Optional[int] = Field(None, ge=0, le=100)
    final_score: int = Field(..., ge=0, le=100)
    knockout_triggered: bool
    knockout_reason_hint: Optional[str] = None
    data_completeness: float = Field(..., ge=0, le=1)
    missing_fee_items: tuple[str, ...] = ()
    missing_scope_items: tuple[str, ...] = ()
    policy_red_flags: tuple[str, ...] = ()
    vendor_completeness_flags: tuple[str, ...] = ()
    total_mandatory: int = 0
    covered_mandatory: int = 0

    model_config = ConfigDict(frozen=True)


class LockedScore(DeterministicScore):
    """Deterministic score with its rank; the fields no later step may change."""

    rank: int = Field(..., ge=1)
    recommendation_level: RecommendationLevel


# ---------------------------------------------------------------------------
# Result contract
# ---------------------------------------------------------------------------


class BatchSummary(BaseModel):
    """Batch-level facts about one evaluation run."""

    total_proposals: int = Field(..., ge=1)
    evaluation_mode: EvaluationMode
    project_type_detected: ProjectScale
    price_benchmark_used: Optional[float] = None
    market_context: Optional[str] = None

    @model_validator(mode="after")
    def benchmark_matches_mode(self) -> "BatchSummary":
        if self.evaluation_mode == "SINGLE" and self.price_benchmark_used is not None:
            raise ValueError("SINGLE evaluations carry no price benchmark")
        if self.price_benchmark_used is not None and self.price_benchmark_used <= 0:
            raise ValueError("price_benchmark_used must be positive")
        return self


class Flags(BaseModel):
    red_flags: list[str] = Field(default_factory=list)
    green_flags: list[str] = Field(default_factory=list)
    knockout_triggered: bool
    knockout_reason: Optional[str] = None


class SingleAnalysis(BaseModel):
    """Qualitative analysis of a proposal evaluated on its own."""

    requirements_alignment: str = Field(..., min_length=1)
    timeline_assessment: str = Field(..., min_length=1)
    experience_assessment: str = Field(..., min_length=1)
    scope_quality: str = Field(..., min_length=1)
    fee_structure_assessment: Optional[str] = None
    payment_terms_assessment: Optional[str] = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    extra_offerings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class CompareAnalysis(SingleAnalysis):
    """Qualitative analysis of a proposal compared against its competitors."""

    price_assessment: str = Field(..., min_length=1)


class RankedProposal(BaseModel):
    """One proposal in the final ranked output."""

    proposal_id: str
    vendor_name: str = Field(..., min_length=1)
    final_score: int = Field(..., ge=0, le=100)
    rank: int = Field(..., ge=1)
    data_completeness: float = Field(..., ge=0, le=1)
    recommendation_level: RecommendationLevel
    flags: Flags
    individual_analysis: Union[CompareAnalysis, SingleAnalysis]
    comparative_notes: Optional[str] = None

    @property
    def mode(self) -> EvaluationMode:
        if isinstance(self.individual_analysis, CompareAnalysis):
            return "COMPARE"
        return "SINGLE"


class EvaluationMetadata(BaseModel):
    model_used: str
    provider: str
    temperature: float = 0
    evaluation_time_ms: int = Field(..., ge=0)


class EvaluationResponse(BaseModel):
    """Successful evaluation result returned to the caller."""

    success: Literal[True] = True
    project_id: str
    cached: bool = False
    batch_summary: BatchSummary
    ranked_proposals: list[RankedProposal] = Field(..., min_length=1)
    evaluation_metadata: Optional[EvaluationMetadata] = None

    @model_validator(mode="after")
    def proposals_match_mode(self) -> "EvaluationResponse":
        mode = self.batch_summary.evaluation_mode
        for ranked in self.ranked_proposals:
            if ranked.mode != mode:
                raise ValueError(
                    f"proposal {ranked.proposal_id} has {ranked.mode} analysis in a {mode} evaluation"
                )
            if mode == "SINGLE" and ranked.comparative_notes is not None:
                raise ValueError("SINGLE evaluations carry no comparative notes")
        if self.batch_summary.total_proposals != len(self.ranked_proposals):
            raise ValueError("total_proposals does not match the ranked proposal count")
        return self

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=False)


class ErrorResponse(BaseModel):
    """Structured failure returned to the caller."""

    success: Literal[False] = False
    error: str
    error_code: str
    retry_after_seconds: Optional[int] = None

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
