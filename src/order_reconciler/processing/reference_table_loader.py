"""
Reference table loading for the Order Reconciler.

Reads the vehicle spreadsheet that extracted service orders are matched
against. Excel workbooks are read with openpyxl; CSV exports (comma or
semicolon separated, optionally with a BOM) with the csv module.

The first row holds the column names. Every following row becomes a dict
keyed by column name; empty cells are left out of the dict and rows whose
cells are all empty are skipped. Cell values keep their spreadsheet types
(numbers stay numbers), the matcher normalizes them at comparison time.

Typical usage example:
    loader = ReferenceTableLoader()
    table = loader.load("frota.xlsx")
    report = RecordMatcher().match(record, table.rows, table.columns)
"""

import csv
import logging
import zipfile
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..models.data_structures import ReferenceTable
from ..utils.error_handlers import ReferenceTableError
from ..utils.validation_utils import validate_file_size, validate_table_file

logger = logging.getLogger(__name__)

PathType = Union[str, PathLike]

EMPTY_HEADER = "__EMPTY"
CSV_DELIMITERS = ",;\t"
_CSV_SAMPLE_SIZE = 4096


def build_column_names(header: Sequence[Any]) -> List[str]:
    """
    Turn a header row into unique column names.

    Blank headers become ``__EMPTY``; repeated names get ``_1``, ``_2``...
    suffixes in order of appearance.

    Args:
        header: Raw header cell values.

    Returns:
        Column names, one per header cell.
    """
    columns: List[str] = []
    seen: Dict[str, int] = {}
    for cell in header:
        name = str(cell).strip() if cell is not None else ""
        if not name:
            name = EMPTY_HEADER
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        columns.append(name)
    return columns


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def rows_to_records(
    columns: Sequence[str], rows: Iterable[Sequence[Any]]
) -> List[Dict[str, Any]]:
    """Zip data rows with column names, dropping empty cells and rows."""
    records: List[Dict[str, Any]] = []
    for values in rows:
        record = {
            column: value
            for column, value in zip(columns, values)
            if not _is_empty(value)
        }
        if record:
            records.append(record)
    return records


class ReferenceTableLoader:
    """
    Loads reference vehicle tables from ``.xlsx``/``.xlsm``/``.csv`` files.

    Attributes:
        max_file_size_mb: Files larger than this are rejected.
    """

    def __init__(self, max_file_size_mb: float = 50) -> None:
        if max_file_size_mb <= 0:
            raise ValueError(
                f"max_file_size_mb must be positive, got {max_file_size_mb}"
            )
        self.max_file_size_mb = max_file_size_mb

    def load(self, path: PathType, sheet_name: Optional[str] = None) -> ReferenceTable:
        """
        Load a reference table.

        Args:
            path: Spreadsheet path.
            sheet_name: Worksheet to read (Excel only). Defaults to the first
                worksheet.

        Returns:
            ReferenceTable with ordered columns and non-empty rows.

        Raises:
            ReferenceTableError: If the file is missing, unsupported,
                unreadable, or contains no data rows.
        """
        path_str = str(path)

        is_valid, error_msg = validate_table_file(path_str)
        if not is_valid:
            raise ReferenceTableError(error_msg, source_id=path_str)

        is_valid, error_msg = validate_file_size(path_str, self.max_file_size_mb)
        if not is_valid:
            raise ReferenceTableError(error_msg, source_id=path_str)

        if path_str.lower().endswith(".csv"):
            columns, rows = self._read_csv(path_str)
            used_sheet = None
        else:
            columns, rows, used_sheet = self._read_workbook(path_str, sheet_name)

        if not rows:
            raise ReferenceTableError(
                f"Reference table has no data: {path_str}",
                source_id=path_str,
                sheet_name=used_sheet,
            )

        logger.info(
            f"Loaded {len(rows)} row(s) with {len(columns)} column(s) "
            f"from {Path(path_str).name}"
            + (f" [{used_sheet}]" if used_sheet else "")
        )

        return ReferenceTable(
            columns=columns, rows=rows, source_file=path_str, sheet_name=used_sheet
        )

    def _read_workbook(
        self, path: str, sheet_name: Optional[str]
    ) -> Tuple[List[str], List[Dict[str, Any]], str]:
        try:
            wb = load_workbook(path, data_only=True, read_only=True)
        except (InvalidFileException, zipfile.BadZipFile, OSError) as e:
            raise ReferenceTableError(
                f"Failed to open workbook: {e}", source_id=path, original_error=e
            ) from e

        try:
            if sheet_name is not None:
                if sheet_name not in wb.sheetnames:
                    raise ReferenceTableError(
                        f"Worksheet '{sheet_name}' not found; "
                        f"available: {wb.sheetnames}",
                        source_id=path,
                        sheet_name=sheet_name,
                    )
                ws = wb[sheet_name]
            else:
                if not wb.sheetnames:
                    raise ReferenceTableError(
                        f"No worksheets found in {path}", source_id=path
                    )
                ws = wb[wb.sheetnames[0]]

            row_iter = ws.iter_rows(values_only=True)
            header = next(row_iter, None)
            if header is None:
                return [], [], ws.title

            columns = build_column_names(header)
            rows = rows_to_records(columns, row_iter)
            return columns, rows, ws.title
        finally:
            wb.close()

    def _read_csv(self, path: str) -> Tuple[List[str], List[Dict[str, Any]]]:
        try:
            with open(path, "r", encoding="utf-8-sig", newline="") as f:
                sample = f.read(_CSV_SAMPLE_SIZE)
                f.seek(0)
                try:
                    dialect = csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
                except csv.Error:
                    dialect = csv.excel
                reader = csv.reader(f, dialect)
                header = next(reader, None)
                if header is None:
                    return [], []
                columns = build_column_names(header)
                rows = rows_to_records(columns, reader)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise ReferenceTableError(
                f"Failed to read CSV file: {e}", source_id=path, original_error=e
            ) from e

        return columns, rows
