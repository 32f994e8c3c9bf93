"""Command-line entry point for a single evaluation run.

Usage:
    python -m proposal_evaluation.main --project-id <id> [--proposal-id <id> ...] [--force]

Prints the JSON response body and exits 0 on success, 1 on failure.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .config import load_config
from .service import ProposalEvaluationService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate and rank the proposals of a project.")
    parser.add_argument("--project-id", required=True, help="Project to evaluate")
    parser.add_argument(
        "--proposal-id",
        dest="proposal_ids",
        action="append",
        help="Restrict to this proposal (repeatable)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-evaluate even when completed results are stored",
    )
    return parser.parse_args(argv)


async def run(argv: Optional[List[str]] = None) -> int:
    """Run one evaluation and print the response body.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    config = load_config()
    logging.getLogger().setLevel(config.log_level)

    service = ProposalEvaluationService(config)
    status, body = await service.handle_request({
        "project_id": args.project_id,
        "proposal_ids": args.proposal_ids,
        "force_reevaluate": args.force,
    })
    print(json.dumps(body, ensure_ascii=False, indent=2))
    logger.info(f"Evaluation finished with status {status}")
    return 0 if body.get("success") else 1


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
