"""
Processing modules for the Order Reconciler.

This package contains the document reading and field extraction components.
"""

from .field_extractor import ExtractorConfig, FieldExtractor
from .pdf_text_reader import PDFReaderConfig, PDFTextReader
from .reference_table_loader import ReferenceTableLoader
from .template_selector import TemplateSelector

__all__ = [
    "ExtractorConfig",
    "FieldExtractor",
    "PDFReaderConfig",
    "PDFTextReader",
    "ReferenceTableLoader",
    "TemplateSelector",
]
