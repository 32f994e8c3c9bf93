"""Supabase data access and the evaluation result store."""

from .client import SupabaseClient
from .result_store import ResultStore

__all__ = ["SupabaseClient", "ResultStore"]
