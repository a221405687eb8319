"""
Reconciliation Pipeline Module

Runs the end-to-end workflow: read a service-order PDF, extract its fields,
load the reference vehicle table and match the two.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from ..matching.record_matcher import RecordMatcher
from ..models.data_structures import MatchReport, StructuredRecord
from ..processing.field_extractor import FieldExtractor
from ..processing.pdf_text_reader import PDFTextReader
from ..processing.reference_table_loader import ReferenceTableLoader
from ..utils.config_loader import SystemConfig
from ..utils.error_handlers import ReconciliationError, log_error_with_context


logger: logging.Logger = logging.getLogger(__name__)

PathType = Union[str, Path]


@dataclass
class ReconciliationResult:
    """Outcome of reconciling one service order against a reference table.

    Attributes:
        record: Fields extracted from the document.
        report: Best-match report against the reference table.
        source_file: Document path, None when text was supplied directly.
        reference_file: Reference table path, None for in-memory rows.
        processing_times: Wall-clock seconds per stage.
        timestamp: When the reconciliation finished.
    """

    record: StructuredRecord
    report: MatchReport
    source_file: Optional[str] = None
    reference_file: Optional[str] = None
    processing_times: Dict[str, float] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "reference_file": self.reference_file,
            "timestamp": self.timestamp.isoformat(),
            "record": self.record.to_dict(),
            "match": self.report.to_dict(),
            "processing_times": dict(self.processing_times),
        }


class ReconciliationPipeline:
    """Wires the reader, extractor, loader and matcher together.

    Components can be injected for testing; anything not supplied is built
    from ``config`` (or from defaults when no config is given).

    Example:
        >>> pipeline = ReconciliationPipeline(Config.load())
        >>> result = pipeline.reconcile_files("os_123.pdf", "frota.xlsx")
        >>> print(result.report.comparison_note)
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        pdf_reader: Optional[PDFTextReader] = None,
        table_loader: Optional[ReferenceTableLoader] = None,
        extractor: Optional[FieldExtractor] = None,
        matcher: Optional[RecordMatcher] = None,
    ) -> None:
        self.config = config or SystemConfig()

        pdf_config = self.config.pdf_reader_config()
        self.pdf_reader = pdf_reader or PDFTextReader(pdf_config)
        self.table_loader = table_loader or ReferenceTableLoader(
            pdf_config.max_file_size_mb
        )
        self.extractor = extractor or FieldExtractor(self.config.extractor_config())
        self.matcher = matcher or RecordMatcher(self.config.matcher_config())

        logger.info("ReconciliationPipeline initialized")

    def extract_file(self, pdf_path: PathType) -> StructuredRecord:
        """Read a PDF and extract its structured record.

        Raises:
            DocumentReadError: If the PDF cannot be read.
        """
        pages = self.pdf_reader.extract_page_texts(pdf_path)
        return self.extractor.extract(pages)

    def reconcile(
        self,
        pages: Sequence[Optional[str]],
        rows: Sequence[Mapping[str, Any]],
        columns: Sequence[str],
        column_mapping: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ReconciliationResult:
        """Reconcile in-memory page texts against in-memory rows.

        Never raises for unmatched fields or an empty table; the report
        carries the outcome.
        """
        timings: Dict[str, float] = {}

        start = time.time()
        record = self.extractor.extract(pages)
        timings["extraction"] = time.time() - start

        start = time.time()
        report = self.matcher.match(record, rows, columns, column_mapping)
        timings["matching"] = time.time() - start

        return ReconciliationResult(
            record=record, report=report, processing_times=timings
        )

    def reconcile_files(
        self,
        pdf_path: PathType,
        table_path: PathType,
        column_mapping: Optional[Mapping[str, Optional[str]]] = None,
        sheet_name: Optional[str] = None,
    ) -> ReconciliationResult:
        """Reconcile a service-order PDF against a reference spreadsheet.

        Args:
            pdf_path: Service-order PDF.
            table_path: Reference ``.xlsx``/``.csv`` table.
            column_mapping: Optional explicit ``field -> column`` mapping.
            sheet_name: Worksheet to read, defaults to the first one.

        Returns:
            ReconciliationResult with file paths and stage timings.

        Raises:
            DocumentReadError: If the PDF cannot be read.
            ReferenceTableError: If the table cannot be loaded or is empty.
        """
        start_time = time.time()
        logger.info(f"Reconciling {pdf_path} against {table_path}")

        stage = "document_reading"
        try:
            pages = self.pdf_reader.extract_page_texts(pdf_path)
            read_time = time.time() - start_time

            stage = "reference_loading"
            start = time.time()
            table = self.table_loader.load(table_path, sheet_name=sheet_name)
            load_time = time.time() - start

        except ReconciliationError as e:
            log_error_with_context(
                e,
                logger,
                {
                    "source_id": e.source_id or str(pdf_path),
                    "stage": e.stage or stage,
                    "reference_file": str(table_path),
                },
            )
            raise

        result = self.reconcile(pages, table.rows, table.columns, column_mapping)
        result.source_file = str(pdf_path)
        result.reference_file = str(table_path)
        result.processing_times = {
            "document_reading": read_time,
            "reference_loading": load_time,
            **result.processing_times,
            "total": time.time() - start_time,
        }

        logger.info(
            f"Reconciled {Path(pdf_path).name} in "
            f"{result.processing_times['total']:.2f}s: "
            f"{result.report.comparison_note}"
        )
        return result
