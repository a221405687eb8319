"""
Test suite for csv_exporter.py module.

Location: tests/unit/export/test_csv_exporter.py
"""

import csv
from decimal import Decimal
from unittest.mock import patch

import pytest

from order_reconciler.export.csv_exporter import CSVExporter
from order_reconciler.models.data_structures import (
    FieldDifference,
    LineItem,
    MatchReport,
    StructuredRecord,
)
from order_reconciler.utils.error_handlers import ExportError


def read_rows(path, delimiter=","):
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return list(csv.reader(f, delimiter=delimiter))


@pytest.fixture
def report():
    return MatchReport(
        total_rows=2,
        best_row_index=0,
        best_row_data={"Placa": "ABC1234", "KM": 13000.0},
        match_score=12,
        comparison_note="Melhor correspondência na linha 1 (score 12)",
        sample_differences=(
            FieldDifference("km_atual", 13000.0, "12000"),
            FieldDifference("modelo", None, "=SUM(A1)"),
        ),
    )


class TestCSVExporterInit:
    """Test suite for exporter options."""

    @pytest.mark.parametrize("delimiter", ["", ";;", "\n"])
    def test_invalid_delimiter(self, delimiter):
        with pytest.raises(ValueError):
            CSVExporter(delimiter=delimiter)


class TestExportDifferences:
    """Test suite for difference export."""

    def test_rows(self, report, tmp_path):
        """Test values are stringified and formulas neutralized."""
        output = CSVExporter().export_differences(report, tmp_path / "diff.csv")

        assert read_rows(output) == [
            ["field", "excel_value", "pdf_value"],
            ["km_atual", "13000", "12000"],
            ["modelo", "", "'=SUM(A1)"],
        ]

    def test_header_only_when_no_differences(self, tmp_path):
        empty = MatchReport(
            total_rows=0,
            best_row_index=None,
            best_row_data=None,
            match_score=0,
            comparison_note="Nenhuma correspondência encontrada",
        )
        output = CSVExporter().export_differences(empty, tmp_path / "diff.csv")
        assert read_rows(output) == [["field", "excel_value", "pdf_value"]]

    def test_semicolon_delimiter(self, report, tmp_path):
        output = CSVExporter(delimiter=";").export_differences(
            report, tmp_path / "diff.csv"
        )
        assert read_rows(output, delimiter=";")[1] == ["km_atual", "13000", "12000"]

    def test_bom_written(self, report, tmp_path):
        output = CSVExporter().export_differences(report, tmp_path / "diff.csv")
        assert output.read_bytes().startswith(b"\xef\xbb\xbf")

    def test_write_failure(self, report, tmp_path):
        with patch(
            "order_reconciler.export.csv_exporter.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(ExportError, match="Failed to write CSV"):
                CSVExporter().export_differences(report, tmp_path / "diff.csv")
        assert list(tmp_path.iterdir()) == []


class TestExportLineItems:
    """Test suite for line item export."""

    def test_rows(self, tmp_path):
        record = StructuredRecord(
            source_type="vendor_a_preventive",
            line_items=(
                LineItem("Troca de óleo", Decimal("150.00")),
                LineItem("-Desconto", Decimal("1234.56")),
            ),
        )

        output = CSVExporter().export_line_items(record, tmp_path / "items.csv")

        assert read_rows(output) == [
            ["description", "total_value"],
            ["Troca de óleo", "150.00"],
            ["'-Desconto", "1234.56"],
        ]

    def test_no_items(self, tmp_path):
        output = CSVExporter().export_line_items(
            StructuredRecord(source_type="generic"), tmp_path / "items.csv"
        )
        assert read_rows(output) == [["description", "total_value"]]
