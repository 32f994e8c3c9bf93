"""Pytest configuration and fixtures."""

import pytest

from proposal_evaluation.config import Config
from proposal_evaluation.messages import MessageCatalog
from proposal_evaluation.tests.factories import InMemoryDB, project_row, proposal_row


@pytest.fixture
def config() -> Config:
    """Configuration built from explicit values only (no environment, no .env)."""
    return Config(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_key="test-key",
        ai_provider="openai",
        openai_api_key="sk-test",
        google_api_key=None,
        anthropic_api_key=None,
        narrative_locale="en",
        scoring_weights_file=None,
    )


@pytest.fixture
def messages() -> MessageCatalog:
    return MessageCatalog("en")


@pytest.fixture
def fee_item_rows():
    return [
        {"id": "fee-1", "description": "Design", "is_optional": False},
        {"id": "fee-2", "description": "Site  Supervision", "is_optional": False},
        {"id": "fee-3", "description": "Renderings", "is_optional": True},
    ]


@pytest.fixture
def scope_item_rows():
    return [
        {"id": "scope-1", "task_name": "Permit drawings", "is_optional": False},
        {"id": "scope-2", "task_name": "3D model", "is_optional": True},
    ]


@pytest.fixture
def two_proposal_db(fee_item_rows, scope_item_rows) -> InMemoryDB:
    """Two comparable proposals, cheaper one fully covering the mandatory items."""
    full_lines = [
        {"item_id": "fee-1", "description": "Design", "unit_price": 40000},
        {"description": "site supervision", "unit_price": 20000},
    ]
    db = InMemoryDB(
        project=project_row(),
        proposals=[
            proposal_row("prop-a", invite_id="inv-a", price=100000, fee_line_items=full_lines),
            proposal_row("prop-b", invite_id="inv-b", price=200000, fee_line_items=full_lines),
        ],
        fee_items=fee_item_rows,
        scope_items=scope_item_rows,
    )
    return db
