"""Version deduplication for proposals submitted against the same invite."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Proposal

logger = logging.getLogger(__name__)


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value else 0.0


def active_version_key(proposal: Proposal) -> tuple:
    """Sort key putting the active version of an invite first.

    Highest version, then most recent submission, then smallest id.
    """
    return (
        -(proposal.current_version or 0),
        -_timestamp(proposal.submitted_at),
        proposal.id,
    )


class ProposalDeduplicator:
    """Keeps exactly one proposal (the active version) per RFP invite."""

    def deduplicate(self, proposals: List[Proposal]) -> List[Proposal]:
        """Collapse resubmissions so each invite contributes one proposal.

        Args:
            proposals: Eligible proposals, possibly several per invite.

        Returns:
            One proposal per invite, ordered by proposal id.
        """
        groups: Dict[str, List[Proposal]] = {}
        for proposal in proposals:
            if not proposal.rfp_invite_id:
                logger.debug(f"Proposal {proposal.id} has no invite, skipping")
                continue
            groups.setdefault(proposal.rfp_invite_id, []).append(proposal)

        active = []
        superseded = 0
        for invite_id, group in groups.items():
            group.sort(key=active_version_key)
            active.append(group[0])
            superseded += len(group) - 1
            if len(group) > 1:
                logger.debug(
                    f"Invite {invite_id}: keeping {group[0].id} "
                    f"(version {group[0].current_version}), {len(group) - 1} superseded"
                )

        active.sort(key=lambda p: p.id)
        logger.info(f"Deduplication: {len(active)} active, {superseded} superseded versions")
        return active
