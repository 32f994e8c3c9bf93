"""Assembles the evaluation frame for one project from the data store."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..errors import (
    DataStoreError,
    MismatchedComparisonSetError,
    NoEligibleProposalsError,
    NoProposalsError,
    NotFoundError,
)
from ..models import (
    Advisor,
    EvaluationFrame,
    EvaluationRequest,
    FeeItem,
    OrganizationPolicy,
    Project,
    Proposal,
    RFPInvite,
    ServiceScopeItem,
    VendorCompany,
)
from .dedup import ProposalDeduplicator

logger = logging.getLogger(__name__)


def pick_one(value: Any) -> Optional[Dict[str, Any]]:
    """Embedded relations arrive either as an object or a one-element list."""
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else None


class InputAggregator:
    """Loads, filters and deduplicates everything one evaluation run needs.

    Read-only: nothing is written to the data store.
    """

    def __init__(self, db, deduplicator: Optional[ProposalDeduplicator] = None) -> None:
        """Initialize aggregator.

        Args:
            db: Data access object with the SupabaseClient read methods.
            deduplicator: Version deduplicator (a fresh one by default).
        """
        self.db = db
        self.deduplicator = deduplicator or ProposalDeduplicator()

    def load(self, request: EvaluationRequest) -> EvaluationFrame:
        """Build the evaluation frame for a request.

        Args:
            request: Validated evaluation request.

        Returns:
            EvaluationFrame with one active proposal per invite.

        Raises:
            NotFoundError: Project does not exist.
            NoProposalsError: No proposal in an evaluable status.
            NoEligibleProposalsError: Every proposal was dropped.
            MismatchedComparisonSetError: Proposals answer different RFPs.
        """
        project_row = self.db.get_project(request.project_id)
        if not project_row:
            raise NotFoundError("Project not found")
        project = Project.model_validate(project_row)

        rows = self.db.get_proposals(request.project_id, request.proposal_ids)
        if not rows:
            raise NoProposalsError("No proposals found for evaluation")

        eligible = [p for p in (self._parse_proposal(row) for row in rows) if self._is_eligible(p)]
        if not eligible:
            raise NoEligibleProposalsError("No eligible proposals found for evaluation")

        proposals = self.deduplicator.deduplicate(eligible)
        self._check_comparable(proposals)

        invite = self._load_requirements(proposals[0].rfp_invite)
        policy = self._load_policy(project)
        vendor_companies = self._load_vendor_companies(proposals)

        logger.info(
            "Loaded project %s: %d proposals (%d before filtering), %d fee items, %d scope items",
            project.id, len(proposals), len(rows), len(invite.fee_items), len(invite.scope_items),
        )
        return EvaluationFrame(
            project=project,
            proposals=proposals,
            invite=invite,
            policy=policy,
            vendor_companies=vendor_companies,
        )

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    def _parse_proposal(self, row: Dict[str, Any]) -> Proposal:
        data = {k: v for k, v in row.items() if k not in ("advisors", "advisor", "rfp_invite")}
        advisor_row = pick_one(row.get("advisors") or row.get("advisor"))
        invite_row = pick_one(row.get("rfp_invite"))
        try:
            return Proposal(
                **data,
                advisor=Advisor.model_validate(advisor_row) if advisor_row and advisor_row.get("id") else None,
                rfp_invite=RFPInvite.model_validate(invite_row) if invite_row and invite_row.get("id") else None,
            )
        except ValidationError as exc:
            raise DataStoreError(f"Malformed proposal record {row.get('id')}: {exc}") from exc

    @staticmethod
    def _is_eligible(proposal: Proposal) -> bool:
        if proposal.advisor is None or proposal.rfp_invite is None:
            logger.warning(f"Proposal {proposal.id} dropped: advisor or invite unresolved")
            return False
        if not proposal.rfp_invite.is_active:
            logger.info(f"Proposal {proposal.id} dropped: invite {proposal.rfp_invite.status}")
            return False
        return True

    @staticmethod
    def _check_comparable(proposals: List[Proposal]) -> None:
        if len(proposals) < 2:
            return
        rfp_ids = {p.rfp_invite.rfp_id for p in proposals}
        advisor_types = {p.rfp_invite.advisor_type for p in proposals}
        if len(rfp_ids) > 1 or len(advisor_types) > 1:
            raise MismatchedComparisonSetError(
                "Proposals must share the same RFP and advisor type to be compared",
                details={
                    "rfp_ids": sorted(str(r) for r in rfp_ids),
                    "advisor_types": sorted(str(t) for t in advisor_types),
                },
            )

    # ------------------------------------------------------------------
    # Requirements, policy, vendors
    # ------------------------------------------------------------------

    def _load_requirements(self, invite: RFPInvite) -> RFPInvite:
        fee_items = [FeeItem.model_validate(row) for row in self.db.get_fee_items(invite.id)]
        scope_items = [ServiceScopeItem.model_validate(row) for row in self.db.get_scope_items(invite.id)]
        return invite.model_copy(update={"fee_items": fee_items, "scope_items": scope_items})

    def _load_policy(self, project: Project) -> Optional[OrganizationPolicy]:
        if not project.owner_id:
            return None
        organization_id = self.db.get_organization_id(project.owner_id)
        if not organization_id:
            logger.info(f"Project {project.id}: owner has no organization, policy checks disabled")
            return None
        row = self.db.get_organization_policy(organization_id)
        if not row:
            return None
        return OrganizationPolicy.model_validate({**row, "organization_id": organization_id})

    def _load_vendor_companies(self, proposals: List[Proposal]) -> Dict[str, VendorCompany]:
        """Resolve the company behind each advisor; failures yield an empty map."""
        advisor_ids = sorted({p.advisor_ref for p in proposals if p.advisor_ref})
        try:
            company_ids = self.db.get_advisor_company_ids(advisor_ids)
            companies = {
                row["id"]: VendorCompany.model_validate(row)
                for row in self.db.get_companies(sorted(set(company_ids.values())))
            }
        except Exception as exc:
            logger.warning(f"Vendor company lookup failed, continuing without: {exc}")
            return {}
        return {
            advisor_id: companies[company_id]
            for advisor_id, company_id in company_ids.items()
            if company_id in companies
        }
