"""Idempotent cache read and write of per-proposal evaluation results."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..errors import DataStoreError
from ..models import EvaluationMetadata, EvaluationResponse, RankedProposal

logger = logging.getLogger(__name__)

FAILED_STATUS = "failed"


class ResultStore:
    """Reads and writes the evaluation columns of the proposals table.

    Writes overwrite earlier results; concurrent runs for the same proposals
    are not serialized, the last write wins. A failed save leaves the unsaved
    proposals marked failed rather than completed.
    """

    def __init__(self, db) -> None:
        """Initialize result store.

        Args:
            db: Data access object with get_completed_evaluations and
                update_proposal_evaluation (normally SupabaseClient).
        """
        self.db = db

    def load_cached(self, proposal_ids: Sequence[str]) -> Optional[List[RankedProposal]]:
        """Return stored results when every proposal has a completed evaluation.

        Stored score and rank columns take precedence over the values inside
        the stored result.

        Args:
            proposal_ids: Proposals of the current run (after deduplication).

        Returns:
            Ranked proposals sorted by stored rank, or None on a cache miss.
        """
        if not proposal_ids:
            return None
        rows = self.db.get_completed_evaluations(proposal_ids)
        targeted = set(proposal_ids)
        completed = {row["id"]: row for row in rows if row.get("id") in targeted}
        if len(completed) != len(targeted):
            logger.info(f"Cache miss: {len(completed)}/{len(targeted)} proposals have completed evaluations")
            return None

        ranked = []
        for proposal_id, row in completed.items():
            stored = row.get("evaluation_result") or {}
            record = {
                **stored,
                "proposal_id": proposal_id,
                "final_score": row.get("evaluation_score", stored.get("final_score")),
                "rank": row.get("evaluation_rank", stored.get("rank")),
            }
            try:
                ranked.append(RankedProposal.model_validate(record))
            except ValidationError as exc:
                logger.warning(f"Cached result for {proposal_id} is unreadable, re-evaluating: {exc.error_count()} errors")
                return None

        ranked.sort(key=lambda r: (r.rank, r.proposal_id))
        logger.info(f"Cache hit: {len(ranked)} completed evaluations")
        return ranked

    def save_results(self, response: EvaluationResponse, metadata: EvaluationMetadata) -> None:
        """Persist every ranked proposal of a fresh evaluation.

        When a write fails, the failed proposal and every proposal after it are
        marked failed so a later run cannot serve a mix of old and new rows
        from cache.

        Raises:
            DataStoreError: A write failed.
        """
        completed_at = datetime.now(timezone.utc).isoformat()
        ranked_proposals = response.ranked_proposals
        for index, ranked in enumerate(ranked_proposals):
            record: Dict[str, Any] = {
                "evaluation_result": ranked.model_dump(mode="json"),
                "evaluation_score": ranked.final_score,
                "evaluation_rank": ranked.rank,
                "evaluation_status": "completed",
                "evaluation_completed_at": completed_at,
                "evaluation_metadata": metadata.model_dump(mode="json"),
            }
            try:
                self.db.update_proposal_evaluation(ranked.proposal_id, record)
            except Exception as exc:
                self._mark_failed([r.proposal_id for r in ranked_proposals[index:]])
                raise DataStoreError(
                    f"Failed to save evaluation for proposal {ranked.proposal_id}: {exc}"
                ) from exc
        logger.info(f"Saved {len(ranked_proposals)} evaluation results")

    def _mark_failed(self, proposal_ids: List[str]) -> None:
        """Best-effort status reset for proposals whose results were not saved."""
        for proposal_id in proposal_ids:
            try:
                self.db.update_proposal_evaluation(proposal_id, {"evaluation_status": FAILED_STATUS})
            except Exception as exc:
                logger.warning(f"Could not mark evaluation of {proposal_id} as failed: {exc}")
