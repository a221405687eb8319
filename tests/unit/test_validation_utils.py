"""
Unit tests for input file validation.
"""

from order_reconciler.utils.validation_utils import (
    validate_file_size,
    validate_pdf_file,
    validate_table_file,
)


class TestValidatePDFFile:
    """Test suite for PDF path validation."""

    def test_valid(self, tmp_path):
        pdf = tmp_path / "ordem.PDF"
        pdf.write_bytes(b"%PDF-1.7\n")
        assert validate_pdf_file(str(pdf)) == (True, "")

    def test_empty_path(self):
        is_valid, msg = validate_pdf_file("")
        assert not is_valid
        assert msg == "File path is empty"

    def test_directory(self, tmp_path):
        folder = tmp_path / "pasta.pdf"
        folder.mkdir()
        is_valid, msg = validate_pdf_file(str(folder))
        assert not is_valid
        assert "not a file" in msg

    def test_bad_header(self, tmp_path):
        pdf = tmp_path / "ordem.pdf"
        pdf.write_bytes(b"PK\x03\x04")
        is_valid, msg = validate_pdf_file(str(pdf))
        assert not is_valid
        assert "valid PDF" in msg


class TestValidateTableFile:
    """Test suite for reference table path validation."""

    def test_supported_extensions(self, tmp_path):
        for name in ("frota.xlsx", "frota.XLSM", "frota.csv"):
            path = tmp_path / name
            path.write_bytes(b"x")
            assert validate_table_file(str(path)) == (True, "")

    def test_legacy_xls_rejected(self, tmp_path):
        path = tmp_path / "frota.xls"
        path.write_bytes(b"x")
        is_valid, msg = validate_table_file(str(path))
        assert not is_valid
        assert "Unsupported table format" in msg

    def test_custom_extensions(self, tmp_path):
        path = tmp_path / "frota.tsv"
        path.write_bytes(b"x")
        assert validate_table_file(str(path), extensions=(".tsv",))[0]

    def test_missing(self, tmp_path):
        is_valid, msg = validate_table_file(str(tmp_path / "nada.csv"))
        assert not is_valid
        assert "does not exist" in msg


class TestValidateFileSize:
    """Test suite for size limits."""

    def test_within_limit(self, tmp_path):
        path = tmp_path / "pequeno.csv"
        path.write_bytes(b"a" * 1024)
        assert validate_file_size(str(path), 1) == (True, "")

    def test_over_limit(self, tmp_path):
        path = tmp_path / "grande.csv"
        path.write_bytes(b"a" * 2 * 1024 * 1024)
        is_valid, msg = validate_file_size(str(path), 1)
        assert not is_valid
        assert "exceeds limit of 1MB" in msg
