"""Rank assignment and locking of the authoritative score fields."""

from typing import List

from ..models import DeterministicScore, LockedScore

# (minimum final score, level), checked top-down
RECOMMENDATION_THRESHOLDS = (
    (80, "Highly Recommended"),
    (60, "Recommended"),
    (40, "Review Required"),
)
LOWEST_RECOMMENDATION = "Not Recommended"


def recommendation_level(final_score: int) -> str:
    for threshold, level in RECOMMENDATION_THRESHOLDS:
        if final_score >= threshold:
            return level
    return LOWEST_RECOMMENDATION


def lock_ranks(scores: List[DeterministicScore]) -> List[LockedScore]:
    """Sort by final score (ties by proposal id) and freeze rank and level.

    Args:
        scores: Deterministic scores of one run, any order.

    Returns:
        LockedScore list in rank order, ranks starting at 1.
    """
    ordered = sorted(scores, key=lambda s: (-s.final_score, s.proposal_id))
    return [
        LockedScore(
            **score.model_dump(),
            rank=position,
            recommendation_level=recommendation_level(score.final_score),
        )
        for position, score in enumerate(ordered, start=1)
    ]
