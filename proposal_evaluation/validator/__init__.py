"""Narrative validation and merge with the locked ranking."""

from .merge import ResultMerger, build_batch_summary, detect_project_scale, price_benchmark
from .schema import CompareNarrative, SingleNarrative, validate_narrative

__all__ = [
    "ResultMerger",
    "build_batch_summary",
    "detect_project_scale",
    "price_benchmark",
    "CompareNarrative",
    "SingleNarrative",
    "validate_narrative",
]
