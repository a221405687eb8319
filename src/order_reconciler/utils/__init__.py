"""Utility functions for the order reconciler."""

from .text_utils import normalize_whitespace, parse_locale_decimal, parse_locale_number
from .validation_utils import validate_pdf_file, validate_table_file

__all__ = [
    "normalize_whitespace",
    "parse_locale_decimal",
    "parse_locale_number",
    "validate_pdf_file",
    "validate_table_file",
]
