"""
Orchestration module for the reconciliation workflow.
"""

from .reconciliation_pipeline import ReconciliationPipeline, ReconciliationResult


__all__ = [
    "ReconciliationPipeline",
    "ReconciliationResult",
]
