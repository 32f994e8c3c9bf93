"""Organizational policy precheck for proposals.

Runs three checks per proposal before any scoring:
1. Currency is in the organization's allowed set
2. Upfront payment share stays within the payment-terms policy
3. A vendor/company display name can be resolved
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..messages import MessageCatalog
from ..models import OrganizationPolicy, PolicyViolation, Proposal, VendorCompany
from ..models.project import to_number

# Milestone wording that marks a payment due before or at project start.
# English terms match whole words only; Hebrew terms take attached prefixes
# (e.g. "בתחילת") so they match as substrings.
UPFRONT_KEYWORDS = ("upfront", "up-front", "advance", "start")
UPFRONT_KEYWORDS_HE = ("התחלה", "מקדמה", "תחילת")

UPFRONT_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(keyword) for keyword in UPFRONT_KEYWORDS) + r")\b"
)

MILESTONE_TEXT_FIELDS = ("when", "trigger", "description")


class PrecheckResult(BaseModel):
    """Violations found by the precheck, in proposal order."""

    violations: List[PolicyViolation] = Field(default_factory=list)

    def for_proposal(self, proposal_id: str) -> List[PolicyViolation]:
        return [v for v in self.violations if v.proposal_id == proposal_id]

    @property
    def flagged_ids(self) -> List[str]:
        seen: Dict[str, None] = {}
        for violation in self.violations:
            seen.setdefault(violation.proposal_id, None)
        return list(seen)


def run_precheck(
    proposals: List[Proposal],
    policy: Optional[OrganizationPolicy],
    vendor_companies: Dict[str, VendorCompany],
    messages: Optional[MessageCatalog] = None,
) -> PrecheckResult:
    """Flag organizational policy violations for each proposal.

    Pure: reads only its arguments. A missing policy disables the currency
    and payment-terms checks; the vendor check always runs.

    Args:
        proposals: Active proposals of the run
        policy: Owning organization's policy, if any
        vendor_companies: Resolved companies keyed by advisor id
        messages: Locale catalog for violation messages

    Returns:
        PrecheckResult listing every violation found
    """

    messages = messages or MessageCatalog()
    violations: List[PolicyViolation] = []

    for proposal in proposals:
        for check in (_check_currency(proposal, policy, messages),
                      _check_payment_terms(proposal, policy, messages),
                      _check_vendor(proposal, vendor_companies, messages)):
            if check is not None:
                violations.append(check)

    return PrecheckResult(violations=violations)


def _check_currency(
    proposal: Proposal,
    policy: Optional[OrganizationPolicy],
    messages: MessageCatalog,
) -> Optional[PolicyViolation]:
    """Check the proposal currency against the allowed set."""

    if policy is None:
        return None
    allowed = policy.allowed_currency_set
    currency = (proposal.currency or "").strip().upper()
    if not allowed or not currency or currency in allowed:
        return None

    return PolicyViolation(
        proposal_id=proposal.id,
        type="CURRENCY",
        message=messages.currency_not_allowed(currency, sorted(allowed)),
    )


def _check_payment_terms(
    proposal: Proposal,
    policy: Optional[OrganizationPolicy],
    messages: MessageCatalog,
) -> Optional[PolicyViolation]:
    """Check the upfront share of milestone payments against the policy maximum."""

    if policy is None or policy.max_upfront_percent is None:
        return None

    upfront = upfront_percentage(proposal.milestone_adjustments)
    if upfront <= policy.max_upfront_percent:
        return None

    return PolicyViolation(
        proposal_id=proposal.id,
        type="PAYMENT_TERMS",
        message=messages.upfront_exceeds_policy(upfront, policy.max_upfront_percent),
    )


def _check_vendor(
    proposal: Proposal,
    vendor_companies: Dict[str, VendorCompany],
    messages: MessageCatalog,
) -> Optional[PolicyViolation]:
    """Check that some vendor or company name is known."""

    if resolve_vendor_name(proposal, vendor_companies):
        return None

    return PolicyViolation(
        proposal_id=proposal.id,
        type="VENDOR_INCOMPLETE",
        message=messages.vendor_incomplete(),
    )


def upfront_percentage(milestones: List[Dict[str, Any]]) -> float:
    """Sum the percentage of milestones paid upfront."""

    total = 0.0
    for milestone in milestones:
        text = " ".join(
            str(milestone.get(field) or "") for field in MILESTONE_TEXT_FIELDS
        ).lower()
        if not (UPFRONT_PATTERN.search(text) or any(keyword in text for keyword in UPFRONT_KEYWORDS_HE)):
            continue
        total += to_number(milestone.get("percentage")) or 0.0
    return total


def resolve_vendor_name(proposal: Proposal, vendor_companies: Dict[str, VendorCompany]) -> str:
    """First non-blank of supplier name, advisor company name, resolved company name."""

    company = vendor_companies.get(proposal.advisor_ref or "")
    candidates = (
        proposal.supplier_name,
        proposal.advisor.company_name if proposal.advisor else None,
        company.name if company else None,
    )
    for name in candidates:
        if name and name.strip():
            return name.strip()
    return ""
