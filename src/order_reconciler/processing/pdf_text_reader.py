"""
PDF text reading module for the Order Reconciler.

This module extracts the embedded text of every page of a service-order PDF
using PyMuPDF (fitz). Line breaks inside a page are preserved, so the field
extractor can scan billed lines one by one.

Classes:
    PDFReaderConfig: Immutable configuration for PDF reading.
    PDFTextReader: Reads per-page text from PDF files.

Exceptions:
    PDFEncryptionError: Raised when PDF is password-protected or encrypted.
    PDFCorruptedError: Raised when PDF file is corrupted or invalid.

Typical usage example:
    reader = PDFTextReader(PDFReaderConfig(max_pages=5))
    pages = reader.extract_page_texts("ordem_servico.pdf")
    record = FieldExtractor().extract(pages)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from os import PathLike
from typing import Generator, List, Optional, Union

import fitz  # PyMuPDF

from ..utils.error_handlers import DocumentReadError
from ..utils.validation_utils import validate_file_size, validate_pdf_file

logger = logging.getLogger(__name__)

PathType = Union[str, PathLike]


class PDFEncryptionError(DocumentReadError):
    """Raised when attempting to read encrypted or password-protected PDFs."""

    def __init__(
        self,
        message: str = "PDF is encrypted or password-protected",
        source_id: Optional[str] = None,
    ):
        super().__init__(message, source_id=source_id, recoverable=False)


class PDFCorruptedError(DocumentReadError):
    """Raised when PDF file is corrupted or has invalid structure."""

    def __init__(self, message: str, source_id: Optional[str] = None):
        super().__init__(
            f"Corrupted or invalid PDF: {message}",
            source_id=source_id,
            recoverable=False,
        )


@dataclass(frozen=True)
class PDFReaderConfig:
    """Immutable configuration for PDF text reading.

    Attributes:
        max_file_size_mb: Maximum allowed PDF file size in megabytes. Default
            is 50 MB. Must be positive.
        max_pages: Maximum number of pages read from a PDF. Service orders
            rarely exceed a few pages. Default is 20. Must be positive.
        sort_text: If True, text is returned in reading order (top-left to
            bottom-right) instead of content-stream order. Default is True.

    Raises:
        ValueError: If any parameter is invalid.
    """

    max_file_size_mb: float = 50
    max_pages: int = 20
    sort_text: bool = True

    def __post_init__(self) -> None:
        if self.max_file_size_mb <= 0:
            raise ValueError(
                f"max_file_size_mb must be positive, got {self.max_file_size_mb}"
            )
        if self.max_pages <= 0:
            raise ValueError(f"max_pages must be positive, got {self.max_pages}")

    def with_overrides(self, **kwargs) -> PDFReaderConfig:
        """Create new config with specified parameter overrides.

        Example:
            >>> config = PDFReaderConfig()
            >>> first_page_only = config.with_overrides(max_pages=1)
        """
        return replace(self, **kwargs)


class PDFTextReader:
    """Extracts embedded page text from PDF files.

    Scanned orders without a text layer come back as empty strings; the
    reader does not OCR.

    Attributes:
        config: Immutable reader configuration.

    Example:
        >>> reader = PDFTextReader(PDFReaderConfig(max_pages=10))
        >>> pages = reader.extract_page_texts("order.pdf")
        >>> print(f"Read {len(pages)} pages")
    """

    def __init__(self, config: Optional[PDFReaderConfig] = None) -> None:
        self.config = config or PDFReaderConfig()
        logger.info(
            f"PDFTextReader initialized (max pages: {self.config.max_pages}, "
            f"max size: {self.config.max_file_size_mb}MB)"
        )

    @contextmanager
    def _open_pdf_validated(
        self, pdf_path: PathType
    ) -> Generator[fitz.Document, None, None]:
        """Context manager for validated PDF document handling.

        Args:
            pdf_path: Path to PDF file to open.

        Yields:
            Opened fitz.Document object ready for reading.

        Raises:
            DocumentReadError: If validation fails or the file cannot be read.
            PDFEncryptionError: If PDF is encrypted or password-protected.
            PDFCorruptedError: If PDF structure is invalid.
        """
        path_str = str(pdf_path)

        is_valid, error_msg = validate_pdf_file(path_str)
        if not is_valid:
            raise DocumentReadError(error_msg, source_id=path_str)

        is_valid, error_msg = validate_file_size(path_str, self.config.max_file_size_mb)
        if not is_valid:
            raise DocumentReadError(error_msg, source_id=path_str)

        doc = None
        try:
            doc = fitz.open(path_str)

            if doc.is_encrypted:
                raise PDFEncryptionError(source_id=path_str)

            if len(doc) == 0:
                raise PDFCorruptedError("PDF contains no pages", source_id=path_str)

            yield doc

        except DocumentReadError:
            raise
        except fitz.FileDataError as e:
            raise PDFCorruptedError(str(e), source_id=path_str) from e
        except OSError as e:
            raise DocumentReadError(
                f"Failed to open PDF file: {e}", source_id=path_str, original_error=e
            ) from e
        finally:
            if doc is not None:
                doc.close()

    def extract_page_texts(self, pdf_path: PathType, **config_overrides) -> List[str]:
        """Extract the text of every page, in page order.

        Args:
            pdf_path: Path to the PDF file. Must be a valid, non-encrypted PDF
                within the size limit.
            **config_overrides: Temporary config overrides (e.g. max_pages=1).

        Returns:
            One string per page read, line breaks preserved. Pages without a
            text layer yield an empty string.

        Raises:
            DocumentReadError: If validation fails or a page cannot be read.
            PDFEncryptionError: If PDF is encrypted.
            PDFCorruptedError: If PDF structure is invalid.
        """
        config = (
            self.config.with_overrides(**config_overrides)
            if config_overrides
            else self.config
        )

        with self._open_pdf_validated(pdf_path) as doc:
            num_pages = min(len(doc), config.max_pages)

            if len(doc) > config.max_pages:
                logger.warning(
                    f"PDF has {len(doc)} pages, reading only first {config.max_pages}"
                )

            texts: List[str] = []
            for page_num in range(num_pages):
                try:
                    text = doc[page_num].get_text("text", sort=config.sort_text)
                except RuntimeError as e:
                    raise DocumentReadError(
                        f"Failed to read text of page {page_num + 1}: {e}",
                        source_id=str(pdf_path),
                        page_number=page_num + 1,
                        original_error=e,
                    ) from e
                texts.append(text or "")
                logger.debug(f"Read page {page_num + 1}/{num_pages}")

        empty = sum(1 for text in texts if not text.strip())
        if empty:
            logger.warning(
                f"{empty}/{len(texts)} page(s) of {pdf_path} have no text layer"
            )

        logger.info(f"Read text of {len(texts)} page(s) from {pdf_path}")
        return texts

    def extract_text(self, pdf_path: PathType) -> str:
        """Extract the whole document text as one line-oriented string."""
        return "\n".join(self.extract_page_texts(pdf_path))

    def get_page_count(self, pdf_path: PathType) -> int:
        """Return the total page count without reading any text."""
        with self._open_pdf_validated(pdf_path) as doc:
            return len(doc)
