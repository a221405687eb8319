"""
Test suite for report_builder.py module.

Location: tests/unit/matching/test_report_builder.py
"""

import pytest

from order_reconciler.matching.report_builder import NO_MATCH_NOTE, ReportBuilder
from order_reconciler.models.data_structures import (
    FieldDifference,
    FieldScore,
    RowScore,
)


def _row_score(index, total, mismatches=()):
    return RowScore(
        row_index=index,
        total_score=total,
        field_scores={"placa": FieldScore(score=5, max=5, matched=True)},
        mismatches=tuple(mismatches),
        row={"Placa": f"ROW{index}"},
    )


class TestReportBuilder:
    """Test suite for ReportBuilder."""

    def test_empty_ranking(self):
        """Test the no-match report."""
        report = ReportBuilder().build([], total_rows=0)

        assert report.best_row_index is None
        assert report.best_row_data is None
        assert report.match_score == 0
        assert report.comparison_note == NO_MATCH_NOTE
        assert report.sample_differences == ()
        assert report.field_scores == {}

    def test_uses_top_ranked_row(self):
        """Test the first ranked row becomes the best match."""
        ranked = [_row_score(3, 11), _row_score(0, 4)]
        report = ReportBuilder().build(ranked, total_rows=5)

        assert report.best_row_index == 3
        assert report.best_row_data == {"Placa": "ROW3"}
        assert report.match_score == 11
        assert report.total_rows == 5
        assert report.comparison_note == "Melhor correspondência na linha 4 (score 11)"

    def test_integral_float_score_in_note(self):
        """Test float scores without fraction render as integers."""
        report = ReportBuilder().build([_row_score(0, 8.0)], total_rows=1)
        assert report.comparison_note.endswith("(score 8)")

    def test_differences_capped(self):
        """Test only the first max_differences mismatches are kept."""
        mismatches = [FieldDifference(f"f{i}", i, i + 1) for i in range(4)]
        report = ReportBuilder(max_differences=2).build(
            [_row_score(0, 0, mismatches)], total_rows=1
        )

        assert [d.field for d in report.sample_differences] == ["f0", "f1"]

    def test_negative_limit_rejected(self):
        """Test max_differences must be non-negative."""
        with pytest.raises(ValueError, match="max_differences"):
            ReportBuilder(max_differences=-1)

    def test_to_dict_wire_keys(self):
        """Test the serialized report uses the persisted key names."""
        mismatch = FieldDifference("ano", 2017, "2018")
        report = ReportBuilder().build([_row_score(0, 5, [mismatch])], total_rows=1)
        data = report.to_dict()

        assert set(data) == {
            "total_excel_rows",
            "best_match_row_index",
            "best_row_data",
            "match_score",
            "comparison_note",
            "sample_differences",
            "field_scores",
        }
        assert data["sample_differences"] == [
            {"field": "ano", "excel_value": 2017, "pdf_value": "2018"}
        ]
        assert data["field_scores"]["placa"] == {
            "score": 5,
            "max": 5,
            "matched": True,
        }
