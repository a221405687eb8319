"""
Error handling utilities for the Order Reconciler.

The extraction and matching core never raises for unmatched fields or
malformed rows; the exceptions below are raised by the file adapters
(PDF reader, reference table loader), the configuration loader and the
exporters.

Classes:
    ReconciliationError: Base exception for all reconciler errors.
    DocumentReadError: Exception for PDF text extraction errors.
    ReferenceTableError: Exception for reference spreadsheet errors.
    ConfigurationError: Exception for configuration errors.
    ExportError: Exception for report export errors.

Functions:
    log_error_with_context: Log error with full context for debugging.
    create_error_report: Create structured error report for storage/analysis.
"""

import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional


class ReconciliationError(Exception):
    """
    Base exception for reconciler errors.

    Attributes:
        message: Error message describing what went wrong.
        source_id: Optional identifier (usually a file path) being processed.
        stage: Optional processing stage where the error occurred.
        recoverable: Whether retrying the operation could succeed.
        original_error: Optional underlying exception that was wrapped.
    """

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        stage: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.source_id = source_id
        self.stage = stage
        self.recoverable = recoverable
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging and storage.

        Returns:
            Dictionary containing error_type, message, source_id, stage,
            recoverable status, and original error information if available.
        """
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_id": self.source_id,
            "stage": self.stage,
            "recoverable": self.recoverable,
        }

        if self.original_error:
            result["original_error_type"] = type(self.original_error).__name__
            result["original_error_message"] = str(self.original_error)

        return result


class DocumentReadError(ReconciliationError):
    """
    Exception for PDF text extraction errors.

    Attributes:
        page_number: Optional 1-based page number where the error occurred.
    """

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        page_number: Optional[int] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            source_id=source_id,
            stage="document_reading",
            recoverable=recoverable,
            original_error=original_error,
        )
        self.page_number = page_number

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["page_number"] = self.page_number
        return result


class ReferenceTableError(ReconciliationError):
    """
    Exception for reference spreadsheet loading errors.

    Attributes:
        sheet_name: Optional worksheet name involved in the error.
    """

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            source_id=source_id,
            stage="reference_loading",
            recoverable=False,
            original_error=original_error,
        )
        self.sheet_name = sheet_name

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["sheet_name"] = self.sheet_name
        return result


class ConfigurationError(ReconciliationError):
    """
    Exception for configuration errors.

    Attributes:
        config_key: Optional configuration key that caused the error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            stage="initialization",
            recoverable=False,  # Config errors not recoverable without fix
            original_error=original_error,
        )
        self.config_key = config_key

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


class ExportError(ReconciliationError):
    """Exception for failures while writing records or reports to disk."""

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            source_id=source_id,
            stage="export",
            recoverable=True,
            original_error=original_error,
        )


def log_error_with_context(
    error: Exception, logger: logging.Logger, context: Dict[str, Any]
) -> None:
    """
    Log error with context information for debugging.

    Args:
        error: The exception that occurred.
        logger: Logger instance to use for logging.
        context: Dictionary with contextual information (source_id, stage, etc.).

    Note:
        Stack traces are only logged when logger is at DEBUG level or lower.
    """
    error_type = type(error).__name__
    error_message = str(error)

    source_id = context.get("source_id", "unknown")
    stage = context.get("stage", "unknown")

    logger.error(
        f"Error in {stage} for source {source_id}: [{error_type}] {error_message}"
    )

    if isinstance(error, ReconciliationError) and error.original_error:
        original_type = type(error.original_error).__name__
        original_msg = str(error.original_error)
        logger.error(f"  Original error: [{original_type}] {original_msg}")

    for key, value in context.items():
        if key not in ["source_id", "stage"]:
            logger.error(f"  {key}: {value}")

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Stack trace:")
        logger.debug(traceback.format_exc())


def create_error_report(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Create a structured error report for storage and analysis.

    Args:
        error: The exception that occurred.
        context: Optional extra context merged into the report.
        timestamp: Optional timestamp for the error. Defaults to current time.

    Returns:
        Dictionary with error_type, error_message, traceback, timestamp and,
        for reconciler errors, the fields of ``to_dict()``.

    Example:
        >>> error = DocumentReadError("PDF has no pages", source_id="os.pdf")
        >>> report = create_error_report(error)
        >>> print(report['error_type'])
        'DocumentReadError'
    """
    if timestamp is None:
        timestamp = datetime.now()

    report = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": traceback.format_exc(),
        "timestamp": timestamp.isoformat(),
    }

    if isinstance(error, ReconciliationError):
        report.update(error.to_dict())

    if context:
        report["context"] = dict(context)

    return report
