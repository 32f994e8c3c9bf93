"""Tests for InputAggregator against an in-memory data store."""

import logging

import pytest

from proposal_evaluation.aggregator import InputAggregator
from proposal_evaluation.aggregator.loader import pick_one
from proposal_evaluation.errors import (
    MismatchedComparisonSetError,
    NoEligibleProposalsError,
    NoProposalsError,
    NotFoundError,
)
from proposal_evaluation.models import EvaluationRequest
from proposal_evaluation.tests.factories import InMemoryDB, project_row, proposal_row


def _request(**kwargs) -> EvaluationRequest:
    return EvaluationRequest(project_id="proj-1", **kwargs)


class TestFailures:
    def test_missing_project_is_not_found(self):
        db = InMemoryDB(project=None)

        with pytest.raises(NotFoundError) as exc_info:
            InputAggregator(db).load(_request())

        assert exc_info.value.http_status == 404
        assert exc_info.value.message == "Project not found"

    def test_no_proposals(self):
        db = InMemoryDB(project=project_row(), proposals=[])

        with pytest.raises(NoProposalsError) as exc_info:
            InputAggregator(db).load(_request())

        assert exc_info.value.http_status == 400

    def test_ineligible_status_is_not_loaded(self):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1", status="draft")])

        with pytest.raises(NoProposalsError):
            InputAggregator(db).load(_request())

    @pytest.mark.parametrize("invite_status", ["declined", "expired"])
    def test_inactive_invites_are_dropped(self, invite_status):
        db = InMemoryDB(
            project=project_row(),
            proposals=[proposal_row("p-1", invite_status=invite_status)],
        )

        with pytest.raises(NoEligibleProposalsError):
            InputAggregator(db).load(_request())

    def test_unresolvable_advisor_is_dropped(self):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1", advisors=None)])

        with pytest.raises(NoEligibleProposalsError):
            InputAggregator(db).load(_request())

    def test_mismatched_rfp_fails(self):
        db = InMemoryDB(
            project=project_row(),
            proposals=[
                proposal_row("p-1", invite_id="inv-1", rfp_id="rfp-1"),
                proposal_row("p-2", invite_id="inv-2", rfp_id="rfp-2"),
            ],
        )

        with pytest.raises(MismatchedComparisonSetError) as exc_info:
            InputAggregator(db).load(_request())

        assert exc_info.value.http_status == 400

    def test_mismatched_advisor_type_fails(self):
        db = InMemoryDB(
            project=project_row(),
            proposals=[
                proposal_row("p-1", invite_id="inv-1", advisor_type="architect"),
                proposal_row("p-2", invite_id="inv-2", advisor_type="surveyor"),
            ],
        )

        with pytest.raises(MismatchedComparisonSetError):
            InputAggregator(db).load(_request())


class TestFrame:
    def test_dedups_and_attaches_requirements(self, fee_item_rows, scope_item_rows):
        db = InMemoryDB(
            project=project_row(),
            proposals=[
                proposal_row("p-1", invite_id="inv-1", version=1),
                proposal_row("p-2", invite_id="inv-1", version=2),
                proposal_row("p-3", invite_id="inv-2", version=1),
            ],
            fee_items=fee_item_rows,
            scope_items=scope_item_rows,
        )

        frame = InputAggregator(db).load(_request())

        assert frame.proposal_ids == ["p-2", "p-3"]
        assert frame.mode == "COMPARE"
        assert [item.id for item in frame.invite.fee_items] == ["fee-1", "fee-2", "fee-3"]
        assert [item.id for item in frame.invite.mandatory_scope_items] == ["scope-1"]

    def test_mismatch_only_checked_after_dedup(self):
        """An old version answering another RFP does not block the comparison."""
        db = InMemoryDB(
            project=project_row(),
            proposals=[
                proposal_row("p-1", invite_id="inv-1", version=1, rfp_id="rfp-old"),
                proposal_row("p-2", invite_id="inv-1", version=2),
            ],
        )

        frame = InputAggregator(db).load(_request())

        assert frame.mode == "SINGLE"
        assert frame.proposal_ids == ["p-2"]

    def test_embedded_relations_as_lists(self):
        row = proposal_row("p-1")
        row["advisors"] = [row["advisors"]]
        row["rfp_invite"] = [row["rfp_invite"]]
        db = InMemoryDB(project=project_row(), proposals=[row])

        frame = InputAggregator(db).load(_request())

        assert frame.proposals[0].advisor.company_name == "Acme Engineering"
        assert frame.proposals[0].rfp_invite.rfp_id == "rfp-1"

    def test_proposal_subset(self):
        db = InMemoryDB(
            project=project_row(),
            proposals=[
                proposal_row("p-1", invite_id="inv-1"),
                proposal_row("p-2", invite_id="inv-2"),
            ],
        )

        frame = InputAggregator(db).load(_request(proposal_ids=["p-2"]))

        assert frame.proposal_ids == ["p-2"]

    def test_policy_loaded_through_owner_organization(self):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1")])
        db.profiles["user-1"] = "org-1"
        db.policies["org-1"] = {
            "id": "org-1",
            "default_currency": "ILS",
            "allowed_currencies": ["ILS", "USD"],
            "payment_terms_policy": {"max_upfront_percent": 20},
        }

        frame = InputAggregator(db).load(_request())

        assert frame.policy.organization_id == "org-1"
        assert frame.policy.allowed_currency_set == {"ILS", "USD"}
        assert frame.policy.max_upfront_percent == 20

    def test_no_organization_means_no_policy(self):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1")])

        frame = InputAggregator(db).load(_request())

        assert frame.policy is None

    def test_vendor_companies_keyed_by_advisor(self):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1", advisor_id="adv-1")])
        db.advisor_companies["adv-1"] = "co-1"
        db.companies["co-1"] = {"id": "co-1", "name": "Acme Ltd", "registration_number": "51-123"}

        frame = InputAggregator(db).load(_request())

        assert frame.vendor_companies["adv-1"].name == "Acme Ltd"

    def test_vendor_lookup_failure_is_not_fatal(self, caplog):
        db = InMemoryDB(project=project_row(), proposals=[proposal_row("p-1")])
        db.fail_vendor_lookup = True

        with caplog.at_level(logging.WARNING):
            frame = InputAggregator(db).load(_request())

        assert frame.vendor_companies == {}
        assert "Vendor company lookup failed" in caplog.text


def test_pick_one():
    assert pick_one({"id": "a"}) == {"id": "a"}
    assert pick_one([{"id": "a"}, {"id": "b"}]) == {"id": "a"}
    assert pick_one([]) is None
    assert pick_one(None) is None
