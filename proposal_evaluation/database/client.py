"""Supabase database client for proposal evaluation."""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client, create_client

from ..models.project import ELIGIBLE_PROPOSAL_STATUSES

logger = logging.getLogger(__name__)

PROPOSAL_COLUMNS = (
    "id, project_id, advisor_id, rfp_invite_id, supplier_name, price, currency, "
    "timeline_days, scope_text, extracted_text, terms, conditions_json, "
    "fee_line_items, selected_services, milestone_adjustments, "
    "consultant_request_notes, services_notes, status, submitted_at, current_version, "
    "advisors!fk_proposals_advisor(id, company_name, company_id, rating, expertise, "
    "certifications, founding_year), "
    "rfp_invite:rfp_invites!rfp_invite_id(id, rfp_id, advisor_id, advisor_type, status, "
    "request_title, request_content, payment_terms, service_details_text)"
)

PROJECT_COLUMNS = (
    "id, name, type, location, budget, advisors_budget, units, description, phase, "
    "is_large_scale, owner_id"
)


def _first(rows: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


class SupabaseClient:
    """Client for the project, proposal and organization tables."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        """Initialize Supabase client from explicit args or env vars.

        Args:
            url: Supabase project URL (falls back to SUPABASE_URL env var).
            key: Supabase service key (falls back to SUPABASE_KEY env var).
        """
        self._url = url or os.environ["SUPABASE_URL"]
        self._key = key or os.environ["SUPABASE_KEY"]
        self._client: Client = create_client(self._url, self._key)

    # ------------------------------------------------------------------
    # Projects and proposals
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Return the project row, or None when it does not exist."""
        response = (
            self._client.table("projects")
            .select(PROJECT_COLUMNS)
            .eq("id", project_id)
            .limit(1)
            .execute()
        )
        return _first(response.data)

    def get_proposals(
        self,
        project_id: str,
        proposal_ids: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Return eligible proposals of a project with advisor and invite embedded.

        Args:
            project_id: Project the proposals belong to.
            proposal_ids: Optional subset of proposal ids to restrict to.

        Returns:
            Proposal rows; empty list when none match.
        """
        query = (
            self._client.table("proposals")
            .select(PROPOSAL_COLUMNS)
            .eq("project_id", project_id)
            .in_("status", list(ELIGIBLE_PROPOSAL_STATUSES))
        )
        if proposal_ids:
            query = query.in_("id", list(proposal_ids))
        response = query.execute()
        return response.data or []

    # ------------------------------------------------------------------
    # RFP requirements
    # ------------------------------------------------------------------

    def get_fee_items(self, rfp_invite_id: str) -> List[Dict[str, Any]]:
        response = (
            self._client.table("rfp_request_fee_items")
            .select("id, rfp_invite_id, description, unit, quantity, is_optional, charge_type, display_order")
            .eq("rfp_invite_id", rfp_invite_id)
            .order("display_order")
            .execute()
        )
        return response.data or []

    def get_scope_items(self, rfp_invite_id: str) -> List[Dict[str, Any]]:
        response = (
            self._client.table("rfp_service_scope_items")
            .select("id, rfp_invite_id, task_name, is_optional, fee_category, display_order")
            .eq("rfp_invite_id", rfp_invite_id)
            .order("display_order")
            .execute()
        )
        return response.data or []

    # ------------------------------------------------------------------
    # Organizations and vendors
    # ------------------------------------------------------------------

    def get_organization_id(self, user_id: str) -> Optional[str]:
        """Return the organization a user profile belongs to."""
        response = (
            self._client.table("profiles")
            .select("organization_id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        row = _first(response.data)
        return row.get("organization_id") if row else None

    def get_organization_policy(self, organization_id: str) -> Optional[Dict[str, Any]]:
        """Return the policy columns of an organization's company row."""
        response = (
            self._client.table("companies")
            .select(
                "id, default_currency, allowed_currencies, payment_terms_policy, "
                "procurement_rules, required_contract_clauses"
            )
            .eq("id", organization_id)
            .limit(1)
            .execute()
        )
        return _first(response.data)

    def get_advisor_company_ids(self, advisor_ids: Sequence[str]) -> Dict[str, str]:
        """Map advisor id to company id for advisors linked to a company."""
        if not advisor_ids:
            return {}
        response = (
            self._client.table("advisors")
            .select("id, company_id")
            .in_("id", list(advisor_ids))
            .execute()
        )
        return {
            row["id"]: row["company_id"]
            for row in response.data or []
            if row.get("company_id")
        }

    def get_companies(self, company_ids: Sequence[str]) -> List[Dict[str, Any]]:
        if not company_ids:
            return []
        response = (
            self._client.table("companies")
            .select("id, name, registration_number, email, phone")
            .in_("id", list(company_ids))
            .execute()
        )
        return response.data or []

    # ------------------------------------------------------------------
    # Evaluation results
    # ------------------------------------------------------------------

    def get_completed_evaluations(self, proposal_ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Return stored evaluation columns for proposals with a completed result."""
        response = (
            self._client.table("proposals")
            .select("id, evaluation_status, evaluation_result, evaluation_score, evaluation_rank")
            .in_("id", list(proposal_ids))
            .eq("evaluation_status", "completed")
            .execute()
        )
        return response.data or []

    def update_proposal_evaluation(self, proposal_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite the evaluation columns of one proposal.

        Args:
            proposal_id: Proposal to update.
            record: Column values to write.

        Returns:
            The updated row as a dict, or empty dict if not found.
        """
        response = (
            self._client.table("proposals")
            .update(record)
            .eq("id", proposal_id)
            .execute()
        )
        logger.info("Saved evaluation for proposal %s: score=%s rank=%s",
                    proposal_id, record.get("evaluation_score"), record.get("evaluation_rank"))
        return response.data[0] if response.data else {}
