"""Builds the evaluation context document sent to the narrative backend."""

import json
from typing import Any, Dict, List, Optional

from ..messages import MessageCatalog
from ..models import EvaluationFrame, LockedScore, OrganizationPolicy, Proposal
from ..policy import resolve_vendor_name


def build_context(
    frame: EvaluationFrame,
    locked: List[LockedScore],
    messages: MessageCatalog,
) -> Dict[str, Any]:
    """Assemble one context document for the whole batch.

    Args:
        frame: Evaluation frame (proposals carry extracted text by now)
        locked: Locked scores of the same proposals
        messages: Locale catalog for sentinels

    Returns:
        JSON-serializable context dict
    """
    project = frame.project
    invite = frame.invite
    return {
        "evaluation_mode": frame.mode,
        "organization_evaluation_frame": _organization_frame(frame.policy),
        "project_metadata": {
            "id": project.id,
            "name": project.name,
            "type": project.type,
            "location": project.location,
            "budget": project.budget,
            "advisors_budget": project.advisors_budget,
            "units": project.units,
            "description": project.description,
            "is_large_scale": project.is_large_scale,
            "phase": project.phase,
        },
        "rfp_requirements": {
            "rfp_id": invite.rfp_id,
            "rfp_invite_id": invite.id,
            "advisor_type": invite.advisor_type,
            "request_title": invite.request_title,
            "request_content": invite.request_content,
            "service_details_text": invite.service_details_text,
            "payment_terms": invite.payment_terms,
            "fee_items": [item.model_dump() for item in invite.fee_items],
            "service_scope_items": [item.model_dump() for item in invite.scope_items],
        },
        "proposals": [_proposal_record(p, frame, messages) for p in frame.proposals],
        "deterministic_scores": [_score_record(score, messages) for score in locked],
    }


def render_context(context: Dict[str, Any]) -> str:
    return json.dumps(context, ensure_ascii=False, indent=2, default=str)


def _organization_frame(policy: Optional[OrganizationPolicy]) -> Optional[Dict[str, Any]]:
    if policy is None:
        return None
    return {
        "default_currency": policy.default_currency,
        "allowed_currencies": policy.allowed_currencies,
        "payment_terms_policy": policy.payment_terms_policy,
        "procurement_rules": policy.procurement_rules,
        "required_contract_clauses": policy.required_contract_clauses,
    }


def _proposal_record(proposal: Proposal, frame: EvaluationFrame, messages: MessageCatalog) -> Dict[str, Any]:
    company = frame.vendor_companies.get(proposal.advisor_ref or "")
    vendor_name = resolve_vendor_name(proposal, frame.vendor_companies) or messages.not_provided
    declared = proposal.supplier_name or (proposal.advisor.company_name if proposal.advisor else None)
    advisor = proposal.advisor
    return {
        "proposal_id": proposal.id,
        "vendor_name": vendor_name,
        "company_name": advisor.company_name if advisor else None,
        "vendor_profile": {
            "name": vendor_name,
            "registration_number": (company.registration_number if company else None) or messages.not_provided,
            "email": (company.email if company else None) or messages.not_provided,
            "phone": (company.phone if company else None) or messages.not_provided,
            "completeness": "complete" if declared else "partial",
            "rating": advisor.rating if advisor else None,
            "expertise": advisor.expertise if advisor else [],
            "certifications": advisor.certifications if advisor else [],
            "founding_year": advisor.founding_year if advisor else None,
        },
        "price": proposal.price,
        "currency": proposal.currency,
        "timeline_days": proposal.timeline_days,
        "scope_text": proposal.scope_text,
        "extracted_text": proposal.extracted_text,
        "terms": proposal.terms,
        "conditions_json": proposal.conditions_json,
        "fee_line_items": [line.model_dump(exclude_none=True) for line in proposal.fee_line_items],
        "selected_services": proposal.selected_services,
        "milestone_adjustments": proposal.milestone_adjustments,
        "consultant_request_notes": proposal.consultant_request_notes or proposal.services_notes,
        "services_notes": proposal.services_notes,
    }


def _score_record(score: LockedScore, messages: MessageCatalog) -> Dict[str, Any]:
    # An explicit sentinel tells "nothing missing" apart from "no data"
    return {
        "proposal_id": score.proposal_id,
        "final_score_locked": score.final_score,
        "rank_locked": score.rank,
        "recommendation_level_locked": score.recommendation_level,
        "data_completeness_locked": score.data_completeness,
        "knockout_triggered_locked": score.knockout_triggered,
        "knockout_reason_hint": score.knockout_reason_hint,
        "coverage_score": score.coverage_score,
        "price_score": score.price_score,
        "missing_mandatory_fee_items": list(score.missing_fee_items) or [messages.none],
        "missing_mandatory_scope_items": list(score.missing_scope_items) or [messages.none],
        "policy_red_flags": list(score.policy_red_flags),
        "vendor_completeness_flags": list(score.vendor_completeness_flags),
    }
