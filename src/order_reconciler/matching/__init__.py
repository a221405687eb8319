"""
Matching modules for the Order Reconciler.

This package scores reference-table rows against extracted records.
"""

from .column_mapper import ColumnMapper
from .record_matcher import MatcherConfig, RecordMatcher
from .report_builder import ReportBuilder

__all__ = [
    "ColumnMapper",
    "MatcherConfig",
    "RecordMatcher",
    "ReportBuilder",
]
