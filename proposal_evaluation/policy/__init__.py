"""Organizational policy checks applied before scoring."""

from .precheck import PrecheckResult, resolve_vendor_name, run_precheck

__all__ = ["PrecheckResult", "resolve_vendor_name", "run_precheck"]
