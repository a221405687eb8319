"""
Validation utilities for the Order Reconciler.

Provides validation functions for the input files handed to the adapters.
"""

import os
from typing import Iterable, Tuple


TABLE_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


def validate_pdf_file(file_path: str) -> Tuple[bool, str]:
    """
    Validate PDF file exists and is readable.

    Args:
        file_path: Path to PDF file

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not file_path:
        return False, "File path is empty"

    if not os.path.exists(file_path):
        return False, f"File does not exist: {file_path}"

    if not os.path.isfile(file_path):
        return False, f"Path is not a file: {file_path}"

    if not file_path.lower().endswith(".pdf"):
        return False, f"File is not a PDF: {file_path}"

    try:
        with open(file_path, "rb") as f:
            header = f.read(5)
            if not header.startswith(b"%PDF-"):
                return False, f"File does not appear to be a valid PDF: {file_path}"
    except PermissionError:
        return False, f"Permission denied to read file: {file_path}"
    except OSError as e:
        return False, f"Error reading file: {e}"

    return True, ""


def validate_table_file(
    file_path: str, extensions: Iterable[str] = TABLE_EXTENSIONS
) -> Tuple[bool, str]:
    """
    Validate a reference spreadsheet path.

    Args:
        file_path: Path to .xlsx or .csv file
        extensions: Accepted lowercase extensions

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not file_path:
        return False, "File path is empty"

    if not os.path.exists(file_path):
        return False, f"File does not exist: {file_path}"

    if not os.path.isfile(file_path):
        return False, f"Path is not a file: {file_path}"

    if not file_path.lower().endswith(tuple(extensions)):
        return False, f"Unsupported table format: {file_path}"

    return True, ""


def validate_file_size(file_path: str, max_size_mb: float) -> Tuple[bool, str]:
    """
    Validate file size is within limit.

    Args:
        file_path: Path to file
        max_size_mb: Maximum size in megabytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not os.path.exists(file_path):
        return False, f"File does not exist: {file_path}"

    size_bytes = os.path.getsize(file_path)
    size_mb = size_bytes / (1024 * 1024)

    if size_mb > max_size_mb:
        return False, f"File size {size_mb:.2f}MB exceeds limit of {max_size_mb}MB"

    return True, ""
