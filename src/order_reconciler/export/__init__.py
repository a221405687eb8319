"""
Export module for reconciliation results.
"""

from .csv_exporter import CSVExporter
from .json_exporter import JSONExporter, ReconcilerJSONEncoder


__all__ = [
    "CSVExporter",
    "JSONExporter",
    "ReconcilerJSONEncoder",
]
