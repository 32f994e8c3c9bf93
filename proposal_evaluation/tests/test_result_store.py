"""Tests for the evaluation result cache."""

import logging
from unittest.mock import MagicMock

import pytest

from proposal_evaluation.database import ResultStore
from proposal_evaluation.errors import DataStoreError
from proposal_evaluation.models import (
    BatchSummary,
    CompareAnalysis,
    EvaluationMetadata,
    EvaluationResponse,
    Flags,
    RankedProposal,
)
from proposal_evaluation.tests.factories import InMemoryDB


def _ranked(proposal_id: str, rank: int, score: int) -> RankedProposal:
    return RankedProposal(
        proposal_id=proposal_id,
        vendor_name="Acme Engineering",
        final_score=score,
        rank=rank,
        data_completeness=0.8,
        recommendation_level="Recommended",
        flags=Flags(red_flags=["Late delivery risk"], knockout_triggered=False),
        individual_analysis=CompareAnalysis(
            requirements_alignment="Aligned",
            timeline_assessment="Tight",
            experience_assessment="Strong",
            scope_quality="Detailed",
            price_assessment="Below benchmark",
        ),
        comparative_notes="Cheaper than the rest",
    )


@pytest.fixture
def response() -> EvaluationResponse:
    return EvaluationResponse(
        project_id="proj-1",
        batch_summary=BatchSummary(
            total_proposals=2,
            evaluation_mode="COMPARE",
            project_type_detected="STANDARD",
            price_benchmark_used=150.0,
        ),
        ranked_proposals=[_ranked("p-2", 1, 83), _ranked("p-1", 2, 70)],
    )


@pytest.fixture
def metadata() -> EvaluationMetadata:
    return EvaluationMetadata(model_used="gpt-4o", provider="openai", evaluation_time_ms=1200)


class TestSaveResults:
    def test_writes_every_proposal(self, response, metadata):
        db = InMemoryDB()

        ResultStore(db).save_results(response, metadata)

        assert db.updates == ["p-2", "p-1"]
        stored = db.evaluations["p-2"]
        assert stored["evaluation_status"] == "completed"
        assert stored["evaluation_score"] == 83
        assert stored["evaluation_rank"] == 1
        assert stored["evaluation_result"]["individual_analysis"]["price_assessment"] == "Below benchmark"
        assert stored["evaluation_metadata"]["model_used"] == "gpt-4o"
        assert stored["evaluation_completed_at"]

    def test_write_failure_raises_data_store_error(self, response, metadata):
        db = MagicMock()
        db.update_proposal_evaluation.side_effect = RuntimeError("connection reset")

        with pytest.raises(DataStoreError) as exc_info:
            ResultStore(db).save_results(response, metadata)

        assert "p-2" in exc_info.value.message
        assert exc_info.value.error_code == "EVALUATION_FAILED"

    def test_write_failure_marks_unsaved_rows_failed(self, response, metadata):
        class FailingDB(InMemoryDB):
            def update_proposal_evaluation(self, proposal_id, record):
                if proposal_id == "p-1" and record.get("evaluation_status") == "completed":
                    raise RuntimeError("connection reset")
                return super().update_proposal_evaluation(proposal_id, record)

        db = FailingDB()
        store = ResultStore(db)
        db.evaluations = {
            "p-1": {"evaluation_status": "completed", "evaluation_rank": 1, "evaluation_score": 90},
            "p-2": {"evaluation_status": "completed", "evaluation_rank": 2, "evaluation_score": 60},
        }

        with pytest.raises(DataStoreError, match="p-1"):
            store.save_results(response, metadata)

        assert db.evaluations["p-2"]["evaluation_status"] == "completed"
        assert db.evaluations["p-2"]["evaluation_rank"] == 1
        assert db.evaluations["p-1"]["evaluation_status"] == "failed"
        assert store.load_cached(["p-1", "p-2"]) is None

    def test_mark_failed_errors_are_logged(self, response, metadata, caplog):
        db = MagicMock()
        db.update_proposal_evaluation.side_effect = RuntimeError("connection reset")

        with caplog.at_level(logging.WARNING), pytest.raises(DataStoreError):
            ResultStore(db).save_results(response, metadata)

        assert db.update_proposal_evaluation.call_count == 3
        assert "Could not mark evaluation of p-1 as failed" in caplog.text


class TestLoadCached:
    def test_hit_when_every_proposal_completed(self, response, metadata):
        db = InMemoryDB()
        store = ResultStore(db)
        store.save_results(response, metadata)

        cached = store.load_cached(["p-1", "p-2"])

        assert [r.proposal_id for r in cached] == ["p-2", "p-1"]
        assert cached[0] == response.ranked_proposals[0]
        assert isinstance(cached[0].individual_analysis, CompareAnalysis)

    def test_miss_when_any_proposal_lacks_result(self, response, metadata):
        db = InMemoryDB()
        store = ResultStore(db)
        store.save_results(response, metadata)

        assert store.load_cached(["p-1", "p-2", "p-3"]) is None

    def test_miss_for_pending_status(self, response, metadata):
        db = InMemoryDB()
        store = ResultStore(db)
        store.save_results(response, metadata)
        db.evaluations["p-1"]["evaluation_status"] = "pending"

        assert store.load_cached(["p-1", "p-2"]) is None

    def test_stored_columns_override_result_blob(self, response, metadata):
        db = InMemoryDB()
        store = ResultStore(db)
        store.save_results(response, metadata)
        db.evaluations["p-1"]["evaluation_score"] = 90
        db.evaluations["p-1"]["evaluation_rank"] = 1
        db.evaluations["p-2"]["evaluation_rank"] = 2

        cached = store.load_cached(["p-1", "p-2"])

        assert [(r.proposal_id, r.rank, r.final_score) for r in cached] == [("p-1", 1, 90), ("p-2", 2, 83)]

    def test_unreadable_result_is_a_miss(self, response, metadata, caplog):
        db = InMemoryDB()
        store = ResultStore(db)
        store.save_results(response, metadata)
        db.evaluations["p-1"]["evaluation_result"] = {"vendor_name": "Acme"}

        with caplog.at_level(logging.WARNING):
            assert store.load_cached(["p-1", "p-2"]) is None

        assert "unreadable" in caplog.text

    def test_empty_ids_is_a_miss(self):
        assert ResultStore(InMemoryDB()).load_cached([]) is None
