"""Shared Pydantic models for proposal evaluation."""

from .project import (
    ELIGIBLE_PROPOSAL_STATUSES,
    Advisor,
    FeeItem,
    FeeLineItem,
    OrganizationPolicy,
    Project,
    Proposal,
    RFPInvite,
    ServiceScopeItem,
    VendorCompany,
)
from .evaluation import (
    BatchSummary,
    CompareAnalysis,
    DeterministicScore,
    ErrorResponse,
    EvaluationFrame,
    EvaluationMetadata,
    EvaluationMode,
    EvaluationRequest,
    EvaluationResponse,
    Flags,
    LockedScore,
    PolicyViolation,
    RankedProposal,
    SingleAnalysis,
)

__all__ = [
    "ELIGIBLE_PROPOSAL_STATUSES",
    "Advisor",
    "FeeItem",
    "FeeLineItem",
    "OrganizationPolicy",
    "Project",
    "Proposal",
    "RFPInvite",
    "ServiceScopeItem",
    "VendorCompany",
    "BatchSummary",
    "CompareAnalysis",
    "DeterministicScore",
    "ErrorResponse",
    "EvaluationFrame",
    "EvaluationMetadata",
    "EvaluationMode",
    "EvaluationRequest",
    "EvaluationResponse",
    "Flags",
    "LockedScore",
    "PolicyViolation",
    "RankedProposal",
    "SingleAnalysis",
]
