"""Deterministic scoring engine for proposals."""

from .engine import data_completeness, score_prices, score_proposals
from .weights import DEFAULT_WEIGHTS, CompletenessWeights, ScoringWeights, load_weights

__all__ = [
    "score_proposals",
    "score_prices",
    "data_completeness",
    "DEFAULT_WEIGHTS",
    "CompletenessWeights",
    "load_weights",
    "ScoringWeights",
]
