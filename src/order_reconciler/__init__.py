"""
Order Reconciler

Extracts vehicle and order data from service-order PDFs and matches it
against a reference vehicle spreadsheet.
"""

__version__ = "1.0.0"
__author__ = "Order Reconciler Team"

# Core exports
from .matching import MatcherConfig, RecordMatcher
from .models import MatchReport, StructuredRecord
from .orchestration import ReconciliationPipeline
from .processing import ExtractorConfig, FieldExtractor

__all__ = [
    "ExtractorConfig",
    "FieldExtractor",
    "MatchReport",
    "MatcherConfig",
    "ReconciliationPipeline",
    "RecordMatcher",
    "StructuredRecord",
    "__version__",
]
