"""Stable ranking of scored proposals."""

from .locker import lock_ranks, recommendation_level

__all__ = ["lock_ranks", "recommendation_level"]
