"""Verification pipeline: ordering, execution and reports."""
from __future__ import annotations

from .ordering import find_cycle, topological_order
from .pipeline import VerificationPipeline, verify_contexts
from .report import PLANNED, ContextReport, VerificationReport

__all__ = [
    "ContextReport",
    "PLANNED",
    "VerificationPipeline",
    "VerificationReport",
    "find_cycle",
    "topological_order",
    "verify_contexts",
]
