"""Deterministic scoring engine for proposals.

Computes coverage, price, knockout and data-completeness scores. Pure: the
same frame and precheck result always produce the same scores.
"""

import math
import re
from typing import Dict, List, Optional, Set

from ..messages import MessageCatalog
from ..models import DeterministicScore, EvaluationFrame, EvaluationMode, Proposal, RFPInvite
from ..policy import PrecheckResult
from .weights import DEFAULT_WEIGHTS, ScoringWeights

# Violations that knock a proposal out on their own
KNOCKOUT_VIOLATIONS = ("CURRENCY", "PAYMENT_TERMS")


def clamp_int(value: float, low: int = 0, high: int = 100) -> int:
    """Round half up and clamp to [low, high]."""
    # Float noise such as 82.49999999999999 must not flip the rounding
    return max(low, min(high, math.floor(round(value, 6) + 0.5)))


def normalize_text(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower())


def score_proposals(
    frame: EvaluationFrame,
    precheck: PrecheckResult,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    messages: Optional[MessageCatalog] = None,
) -> List[DeterministicScore]:
    """Score every proposal of the frame.

    Mode is SINGLE for one proposal, otherwise COMPARE:
    - SINGLE final score = coverage
    - COMPARE final score = coverage x weights.coverage + price x weights.price
    - Knocked-out proposals score 0 in either mode

    Args:
        frame: Evaluation frame from the aggregator
        precheck: Policy violations for the same proposals
        weights: Scoring weights configuration
        messages: Locale catalog for the knockout hint

    Returns:
        One DeterministicScore per proposal, in frame order
    """

    messages = messages or MessageCatalog()
    mode = frame.mode
    price_scores = score_prices(frame.proposals) if mode == "COMPARE" else {}

    return [
        _score_proposal(
            proposal,
            frame.invite,
            mode,
            price_scores.get(proposal.id),
            precheck,
            weights,
            messages,
        )
        for proposal in frame.proposals
    ]


def _score_proposal(
    proposal: Proposal,
    invite: RFPInvite,
    mode: EvaluationMode,
    price_score: Optional[int],
    precheck: PrecheckResult,
    weights: ScoringWeights,
    messages: MessageCatalog,
) -> DeterministicScore:
    missing_fee = missing_fee_items(proposal, invite)
    missing_scope = missing_scope_items(proposal, invite)
    total = len(invite.mandatory_fee_items) + len(invite.mandatory_scope_items)
    covered = total - len(missing_fee) - len(missing_scope)
    coverage = 100 if total == 0 else clamp_int(covered / total * 100)

    violations = precheck.for_proposal(proposal.id)
    policy_flags = tuple(v.message for v in violations if v.type in KNOCKOUT_VIOLATIONS)
    vendor_flags = tuple(v.message for v in violations if v.type == "VENDOR_INCOMPLETE")

    policy_knockout = bool(policy_flags)
    coverage_knockout = total > 0 and (total - covered) / total > weights.knockout_missing_ratio
    knockout = policy_knockout or coverage_knockout

    hint = None
    if policy_knockout:
        hint = policy_flags[0] or messages.policy_knockout_fallback()
    elif coverage_knockout:
        hint = messages.mandatory_items_missing()

    if knockout:
        final = 0
    elif mode == "SINGLE":
        final = coverage
    else:
        final = clamp_int(coverage * weights.coverage + (price_score or 0) * weights.price)

    return DeterministicScore(
        proposal_id=proposal.id,
        coverage_score=coverage,
        price_score=price_score if mode == "COMPARE" else None,
        final_score=final,
        knockout_triggered=knockout,
        knockout_reason_hint=hint,
        data_completeness=data_completeness(proposal, weights),
        missing_fee_items=tuple(missing_fee),
        missing_scope_items=tuple(missing_scope),
        policy_red_flags=policy_flags,
        vendor_completeness_flags=vendor_flags,
        total_mandatory=total,
        covered_mandatory=covered,
    )


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


def missing_fee_items(proposal: Proposal, invite: RFPInvite) -> List[str]:
    """Names of mandatory fee items with no matching submitted line.

    A line matches by item id, or by normalized description.
    """
    submitted_ids: Set[str] = set()
    submitted_descriptions: Set[str] = set()
    for line in proposal.fee_line_items:
        if line.item_id:
            submitted_ids.add(line.item_id)
        description = normalize_text(line.description)
        if description:
            submitted_descriptions.add(description)

    missing = []
    for item in invite.mandatory_fee_items:
        if item.id in submitted_ids:
            continue
        description = normalize_text(item.description)
        if description and description in submitted_descriptions:
            continue
        missing.append(item.description or item.id)
    return missing


def missing_scope_items(proposal: Proposal, invite: RFPInvite) -> List[str]:
    """Names of mandatory scope items not among the selected services."""
    selected = set(proposal.selected_services)
    return [
        item.task_name or item.id
        for item in invite.mandatory_scope_items
        if item.id not in selected
    ]


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------


def score_prices(proposals: List[Proposal]) -> Dict[str, int]:
    """Inverse min-max price normalization: cheapest 100, costliest 0.

    Proposals without a positive price are left out of the range and score 0.
    """
    prices = {p.id: p.price for p in proposals if p.price is not None and p.price > 0}
    if not prices:
        return {p.id: 0 for p in proposals}

    low, high = min(prices.values()), max(prices.values())
    scores = {}
    for proposal in proposals:
        price = prices.get(proposal.id)
        if price is None:
            scores[proposal.id] = 0
        elif high == low:
            scores[proposal.id] = 100
        else:
            scores[proposal.id] = clamp_int((high - price) / (high - low) * 100)
    return scores


def valid_prices(proposals: List[Proposal]) -> List[float]:
    return [p.price for p in proposals if p.price is not None and p.price > 0]


# ---------------------------------------------------------------------------
# Completeness
# ---------------------------------------------------------------------------


def data_completeness(proposal: Proposal, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Weighted share of the data points a proposal supplied, in [0, 1]."""
    w = weights.completeness
    indicators = (
        (w.price, (proposal.price or 0) > 0),
        (w.timeline, (proposal.timeline_days or 0) > 0),
        (w.scope_text, len(proposal.text_for_scoring.strip()) > weights.min_text_length),
        (w.terms, bool((proposal.terms or "").strip())),
        (w.fee_line_items, bool(proposal.fee_line_items)),
        (w.selected_services, bool(proposal.selected_services)),
        (w.milestones, bool(proposal.milestone_adjustments)),
    )
    score = sum(weight for weight, present in indicators if present)
    return max(0.0, min(1.0, round(score, 2)))
