"""Input aggregation: loading, deduplication and text extraction."""

from .dedup import ProposalDeduplicator
from .extraction import TextExtractionClient
from .loader import InputAggregator

__all__ = ["InputAggregator", "ProposalDeduplicator", "TextExtractionClient"]
