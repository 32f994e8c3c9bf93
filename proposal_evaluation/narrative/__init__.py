"""Pluggable narrative backends for qualitative proposal analysis."""

from .base import NarrativeProvider, NarrativeRequest, NarrativeResponse
from .client import NarrativeClient, NarrativeOutcome, create_provider, parse_narrative, strip_fences

__all__ = [
    "NarrativeProvider",
    "NarrativeRequest",
    "NarrativeResponse",
    "NarrativeClient",
    "NarrativeOutcome",
    "create_provider",
    "parse_narrative",
    "strip_fences",
]
