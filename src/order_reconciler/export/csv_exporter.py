"""CSV Exporter Module.

This module writes the tabular parts of a reconciliation to CSV: the field
differences of the best-matching row and the billed line items of a
service order.

Classes:
    CSVExporter: Handles CSV export operations for reports and records.
"""

import csv
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from ..models.data_structures import MatchReport, StructuredRecord
from ..utils.error_handlers import ExportError
from ..utils.text_utils import stringify_value


logger = logging.getLogger(__name__)

DIFFERENCE_HEADERS = ["field", "excel_value", "pdf_value"]
LINE_ITEM_HEADERS = ["description", "total_value"]

# Leading characters spreadsheet applications evaluate as formulas
CSV_INJECTION_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


class CSVExporter:
    """Exports report differences and line items to CSV files.

    Attributes:
        delimiter: Field delimiter. Default is ``,``; use ``;`` for
            spreadsheets set to a pt-BR locale.
        encoding: Output encoding. Default is ``utf-8-sig`` so Excel detects
            accented characters.

    Example:
        >>> exporter = CSVExporter(delimiter=";")
        >>> exporter.export_differences(report, "output/differences.csv")
    """

    def __init__(self, delimiter: str = ",", encoding: str = "utf-8-sig") -> None:
        if not delimiter or len(delimiter) != 1:
            raise ValueError(
                f"Delimiter must be exactly one character, got: '{delimiter}'"
            )
        if delimiter in ("\n", "\r"):
            raise ValueError("Delimiter cannot be a newline character")
        self.delimiter = delimiter
        self.encoding = encoding

    def export_differences(
        self, report: MatchReport, output_path: Union[str, Path]
    ) -> Path:
        """Export the sampled differences of a match report.

        A report without differences still produces a file with the header
        row, so downstream tooling always finds the file.

        Args:
            report: Match report whose differences are written.
            output_path: Destination file path.

        Returns:
            Path of the written file.

        Raises:
            ExportError: If the file write fails.
        """
        rows = (
            {
                "field": difference.field,
                "excel_value": self._sanitize_value(difference.excel_value),
                "pdf_value": self._sanitize_value(difference.pdf_value),
            }
            for difference in report.sample_differences
        )
        return self._write_csv_atomic(rows, output_path, DIFFERENCE_HEADERS)

    def export_line_items(
        self, record: StructuredRecord, output_path: Union[str, Path]
    ) -> Path:
        """Export the billed line items of a record.

        Amounts are written in plain notation (``1234.50``).
        """
        rows = (
            {
                "description": self._sanitize_value(item.description),
                "total_value": str(item.total_value),
            }
            for item in record.line_items
        )
        return self._write_csv_atomic(rows, output_path, LINE_ITEM_HEADERS)

    def _write_csv_atomic(
        self,
        rows: Iterable[Dict[str, Any]],
        output_path: Union[str, Path],
        headers: List[str],
    ) -> Path:
        output_path_obj = Path(output_path)
        row_count = 0

        try:
            output_path_obj.parent.mkdir(parents=True, exist_ok=True)

            fd, temp_path = tempfile.mkstemp(
                suffix=".csv.tmp", dir=output_path_obj.parent, text=True
            )

            try:
                with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                    writer = csv.DictWriter(
                        f,
                        fieldnames=headers,
                        delimiter=self.delimiter,
                        extrasaction="ignore",
                    )
                    writer.writeheader()
                    for row in rows:
                        writer.writerow(row)
                        row_count += 1

                os.replace(temp_path, output_path_obj)

            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        except OSError as e:
            error_msg = f"Failed to write CSV to {output_path_obj}: {e}"
            logger.error(error_msg)
            raise ExportError(
                error_msg, source_id=str(output_path_obj), original_error=e
            ) from e

        logger.info(f"Exported {row_count} CSV row(s) to {output_path_obj}")
        return output_path_obj

    def _sanitize_value(self, value: Any) -> str:
        """Render a value as text, neutralizing spreadsheet formulas.

        Values starting with a formula character get a leading single quote.
        """
        if value is None:
            return ""

        str_value = stringify_value(value)

        if str_value and str_value[0] in CSV_INJECTION_PREFIXES:
            return "'" + str_value

        return str_value
