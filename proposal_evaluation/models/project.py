"""Source records read from the data store for one evaluation run.

These models sit at the boundary with loosely typed database rows, so numeric
and list fields are coerced leniently: unparseable numbers become None and
malformed list entries are dropped instead of failing the whole run.
"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


ELIGIBLE_PROPOSAL_STATUSES = ("submitted", "resubmitted", "negotiation_requested")
INACTIVE_INVITE_STATUSES = ("declined", "expired")


def to_number(value: Any) -> Optional[float]:
    """Parse a loosely typed number; None for anything non-finite or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip().replace(",", ""))
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class Project(BaseModel):
    """Project the proposals were submitted for."""

    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    budget: Optional[float] = None
    advisors_budget: Optional[float] = None
    units: Optional[float] = None
    description: Optional[str] = None
    phase: Optional[str] = None
    is_large_scale: Optional[bool] = None
    owner_id: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("budget", "advisors_budget", "units", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> Optional[float]:
        return to_number(v)


class Advisor(BaseModel):
    """Advisor (vendor) that submitted a proposal."""

    id: str
    company_name: Optional[str] = None
    company_id: Optional[str] = None
    rating: Optional[float] = None
    expertise: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    founding_year: Optional[int] = None

    @field_validator("expertise", "certifications", mode="before")
    @classmethod
    def _string_list(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(item) for item in v if item is not None]

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator("founding_year", mode="before")
    @classmethod
    def _year(cls, v: Any) -> Optional[int]:
        number = to_number(v)
        return int(number) if number is not None else None


class FeeItem(BaseModel):
    """Fee line requested by the RFP invite."""

    id: str
    description: str = ""
    unit: Optional[str] = None
    quantity: float = 1
    is_optional: bool = False
    charge_type: Optional[str] = None
    display_order: Optional[int] = None

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return v or ""

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> float:
        number = to_number(v)
        return number if number is not None else 1

    @field_validator("is_optional", mode="before")
    @classmethod
    def _optional_flag(cls, v: Any) -> bool:
        return bool(v)


class ServiceScopeItem(BaseModel):
    """Scope task requested by the RFP invite."""

    id: str
    task_name: str = ""
    is_optional: bool = False
    fee_category: Optional[str] = None
    display_order: Optional[int] = None

    @field_validator("task_name", mode="before")
    @classmethod
    def _task_name(cls, v: Any) -> str:
        return v or ""

    @field_validator("is_optional", mode="before")
    @classmethod
    def _optional_flag(cls, v: Any) -> bool:
        return bool(v)


class RFPInvite(BaseModel):
    """Invitation of one advisor to one RFP, with the requirement items."""

    id: str
    rfp_id: Optional[str] = None
    advisor_id: Optional[str] = None
    advisor_type: Optional[str] = None
    status: Optional[str] = None
    request_title: Optional[str] = None
    request_content: Optional[str] = None
    payment_terms: Optional[Any] = None
    service_details_text: Optional[str] = None
    fee_items: list[FeeItem] = Field(default_factory=list)
    scope_items: list[ServiceScopeItem] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return (self.status or "") not in INACTIVE_INVITE_STATUSES

    @property
    def mandatory_fee_items(self) -> list[FeeItem]:
        return [item for item in self.fee_items if not item.is_optional]

    @property
    def mandatory_scope_items(self) -> list[ServiceScopeItem]:
        return [item for item in self.scope_items if not item.is_optional]


class FeeLineItem(BaseModel):
    """Fee line submitted in a proposal.

    Older proposals name the reference ``id``/``name`` instead of
    ``item_id``/``description``; both spellings are accepted.
    """

    item_id: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    total: Optional[float] = None
    comment: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("item_id") is None and data.get("id") is not None:
            data["item_id"] = data["id"]
        if not data.get("description") and data.get("name"):
            data["description"] = data["name"]
        if data.get("item_id") is not None:
            data["item_id"] = str(data["item_id"])
        return data

    @field_validator("quantity", "unit_price", "total", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator("description", "comment", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None


class Proposal(BaseModel):
    """Proposal submitted by an advisor against an RFP invite."""

    id: str
    project_id: Optional[str] = None
    advisor_id: Optional[str] = None
    rfp_invite_id: Optional[str] = None
    supplier_name: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    timeline_days: Optional[float] = None
    scope_text: Optional[str] = None
    extracted_text: Optional[str] = None
    terms: Optional[str] = None
    conditions_json: Optional[Any] = None
    fee_line_items: list[FeeLineItem] = Field(default_factory=list)
    selected_services: list[str] = Field(default_factory=list)
    milestone_adjustments: list[dict[str, Any]] = Field(default_factory=list)
    consultant_request_notes: Optional[str] = None
    services_notes: Optional[str] = None
    status: Optional[str] = None
    submitted_at: Optional[datetime] = None
    current_version: Optional[int] = None

    advisor: Optional[Advisor] = None
    rfp_invite: Optional[RFPInvite] = None

    @field_validator("price", "timeline_days", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator("current_version", mode="before")
    @classmethod
    def _version(cls, v: Any) -> Optional[int]:
        number = to_number(v)
        return int(number) if number is not None else None

    @field_validator("fee_line_items", "milestone_adjustments", mode="before")
    @classmethod
    def _object_list(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    @field_validator("selected_services", mode="before")
    @classmethod
    def _service_ids(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str)]

    @field_validator("submitted_at", mode="before")
    @classmethod
    def _timestamp(cls, v: Any) -> Any:
        return v or None

    @property
    def advisor_ref(self) -> Optional[str]:
        """Advisor id used to look up the vendor company."""
        return self.advisor_id or (self.advisor.id if self.advisor else None)

    @property
    def text_for_scoring(self) -> str:
        """Extracted document text, falling back to the typed scope text."""
        return self.extracted_text or self.scope_text or ""


class OrganizationPolicy(BaseModel):
    """Procurement policy of the organization that owns the project."""

    organization_id: Optional[str] = None
    default_currency: str = "ILS"
    allowed_currencies: Optional[list[str]] = None
    payment_terms_policy: dict[str, Any] = Field(default_factory=dict)
    procurement_rules: Optional[Any] = None
    required_contract_clauses: Optional[Any] = None

    @field_validator("default_currency", mode="before")
    @classmethod
    def _default_currency(cls, v: Any) -> str:
        return v or "ILS"

    @field_validator("allowed_currencies", mode="before")
    @classmethod
    def _currencies(cls, v: Any) -> Optional[list[str]]:
        # Only a missing list falls back to the default currency; [] disables the check
        if not isinstance(v, list):
            return None
        return [item for item in v if isinstance(item, str) and item.strip()]

    @field_validator("payment_terms_policy", mode="before")
    @classmethod
    def _terms_policy(cls, v: Any) -> dict:
        return v if isinstance(v, dict) else {}

    @model_validator(mode="after")
    def _fallback_allowed(self) -> "OrganizationPolicy":
        if self.allowed_currencies is None:
            self.allowed_currencies = [self.default_currency]
        return self

    @property
    def allowed_currency_set(self) -> set[str]:
        return {c.strip().upper() for c in self.allowed_currencies or []}

    @property
    def max_upfront_percent(self) -> Optional[float]:
        return to_number(self.payment_terms_policy.get("max_upfront_percent"))


class VendorCompany(BaseModel):
    """Registered company behind an advisor."""

    id: Optional[str] = None
    name: Optional[str] = None
    registration_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
