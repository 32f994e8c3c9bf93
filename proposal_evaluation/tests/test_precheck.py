"""Tests for the organizational policy precheck."""

import pytest

from proposal_evaluation.messages import MessageCatalog
from proposal_evaluation.models import OrganizationPolicy, VendorCompany
from proposal_evaluation.policy import resolve_vendor_name, run_precheck
from proposal_evaluation.policy.precheck import upfront_percentage
from proposal_evaluation.tests.factories import make_proposal


@pytest.fixture
def policy() -> OrganizationPolicy:
    return OrganizationPolicy(
        default_currency="ILS",
        allowed_currencies=["ILS", "usd"],
        payment_terms_policy={"max_upfront_percent": 20},
    )


class TestCurrency:
    def test_allowed_currency_passes(self, policy, messages):
        proposal = make_proposal("p-1", currency=" usd ")

        result = run_precheck([proposal], policy, {}, messages)

        assert result.violations == []

    def test_disallowed_currency_flagged(self, policy, messages):
        proposal = make_proposal("p-1", currency="eur")

        result = run_precheck([proposal], policy, {}, messages)

        assert [v.type for v in result.violations] == ["CURRENCY"]
        assert "EUR" in result.violations[0].message
        assert "ILS, USD" in result.violations[0].message

    def test_blank_currency_not_flagged(self, policy, messages):
        proposal = make_proposal("p-1", currency="  ")

        assert run_precheck([proposal], policy, {}, messages).violations == []

    def test_allowed_set_defaults_to_default_currency(self, messages):
        policy = OrganizationPolicy(default_currency="USD", allowed_currencies=None)
        proposal = make_proposal("p-1", currency="ILS")

        result = run_precheck([proposal], policy, {}, messages)

        assert [v.type for v in result.violations] == ["CURRENCY"]

    def test_empty_allowed_list_disables_check(self, messages):
        policy = OrganizationPolicy(default_currency="ILS", allowed_currencies=[])
        proposal = make_proposal("p-1", currency="USD")

        result = run_precheck([proposal], policy, {}, messages)

        assert policy.allowed_currencies == []
        assert result.violations == []

    def test_no_policy_disables_currency_and_terms(self, messages):
        proposal = make_proposal(
            "p-1",
            currency="EUR",
            milestone_adjustments=[{"when": "upfront", "percentage": 90}],
        )

        assert run_precheck([proposal], None, {}, messages).violations == []


class TestPaymentTerms:
    def test_upfront_over_max_flagged(self, policy, messages):
        proposal = make_proposal(
            "p-1",
            milestone_adjustments=[
                {"when": "Upfront payment", "percentage": 15},
                {"when": "מקדמה", "percentage": "10"},
                {"when": "Permit approval", "percentage": 75},
            ],
        )

        result = run_precheck([proposal], policy, {}, messages)

        assert [v.type for v in result.violations] == ["PAYMENT_TERMS"]
        assert "25%" in result.violations[0].message
        assert "20%" in result.violations[0].message

    def test_upfront_at_max_passes(self, policy, messages):
        proposal = make_proposal("p-1", milestone_adjustments=[{"trigger": "advance", "percentage": 20}])

        assert run_precheck([proposal], policy, {}, messages).violations == []

    def test_policy_without_max_skips_check(self, messages):
        policy = OrganizationPolicy(allowed_currencies=["ILS"], payment_terms_policy={})
        proposal = make_proposal("p-1", milestone_adjustments=[{"when": "upfront", "percentage": 100}])

        assert run_precheck([proposal], policy, {}, messages).violations == []

    def test_upfront_percentage_ignores_other_milestones(self):
        milestones = [
            {"description": "Payment at project start", "percentage": 10},
            {"when": "Completion", "percentage": 90},
            {"when": "תחילת עבודה", "percentage": "abc"},
        ]

        assert upfront_percentage(milestones) == 10

    def test_upfront_keywords_match_whole_words(self):
        milestones = [
            {"when": "Advanced design approval", "percentage": 30},
            {"when": "Building permit restart", "percentage": 20},
            {"description": "Upstart fee", "percentage": 5},
            {"when": "בתחילת הביצוע", "percentage": 15},
        ]

        assert upfront_percentage(milestones) == 15

    def test_advanced_milestone_not_counted_as_upfront(self, policy, messages):
        proposal = make_proposal(
            "p-1",
            milestone_adjustments=[
                {"when": "Advanced design approval", "percentage": 60},
                {"when": "Handover", "percentage": 40},
            ],
        )

        assert run_precheck([proposal], policy, {}, messages).violations == []


class TestVendor:
    def test_missing_names_flagged(self, messages):
        proposal = make_proposal("p-1", supplier_name=None, company_name=None)

        result = run_precheck([proposal], None, {}, messages)

        assert [v.type for v in result.violations] == ["VENDOR_INCOMPLETE"]
        assert result.violations[0].message == messages.vendor_incomplete()

    def test_resolved_company_name_is_enough(self, messages):
        proposal = make_proposal("p-1", advisor_id="adv-1", supplier_name="", company_name=" ")
        companies = {"adv-1": VendorCompany(id="co-1", name="Acme Ltd")}

        assert run_precheck([proposal], None, companies, messages).violations == []
        assert resolve_vendor_name(proposal, companies) == "Acme Ltd"

    def test_supplier_name_preferred(self):
        proposal = make_proposal("p-1", supplier_name="Declared Name", company_name="Advisor Co")

        assert resolve_vendor_name(proposal, {}) == "Declared Name"


def test_violations_grouped_by_proposal(policy, messages):
    proposals = [
        make_proposal("p-1", currency="EUR", company_name=None),
        make_proposal("p-2"),
    ]

    result = run_precheck(proposals, policy, {}, messages)

    assert [v.type for v in result.for_proposal("p-1")] == ["CURRENCY", "VENDOR_INCOMPLETE"]
    assert result.for_proposal("p-2") == []
    assert result.flagged_ids == ["p-1"]


def test_hebrew_messages_by_default():
    proposal = make_proposal("p-1", supplier_name=None, company_name=None)

    result = run_precheck([proposal], None, {})

    assert result.violations[0].message == MessageCatalog("he").vendor_incomplete()
