"""
Test suite for field_extractor.py module.

Location: tests/unit/processing/test_field_extractor.py

Test Coverage:
    - ExtractorConfig validation
    - Vendor template extraction (vehicle, metadata, line items, totals)
    - Generic template extraction
    - Pattern priority and fallbacks
    - Unmatched fields and empty input

Run tests:
    pytest tests/unit/processing/test_field_extractor.py -v
"""

import re
from decimal import Decimal

import pytest

from order_reconciler.processing.field_extractor import (
    ExtractorConfig,
    FieldExtractor,
    extract_line_items,
    first_match,
    regex_extractor,
)


@pytest.fixture
def extractor():
    """Provide a FieldExtractor with default configuration."""
    return FieldExtractor()


# ============================================================================
# Test Helpers
# ============================================================================


class TestFirstMatch:
    """Test suite for the ordered extractor combinator."""

    def test_returns_first_hit(self):
        """Test earlier extractors take priority."""
        extractors = [
            regex_extractor(re.compile(r"A:(\w+)")),
            regex_extractor(re.compile(r"B:(\w+)")),
        ]
        assert first_match(extractors, "B:two A:one") == "one"

    def test_falls_through(self):
        """Test later extractors are tried when earlier ones miss."""
        extractors = [lambda text: None, lambda text: "fallback"]
        assert first_match(extractors, "anything") == "fallback"

    def test_all_miss(self):
        """Test None when nothing matches."""
        assert first_match([lambda text: None], "anything") is None

    def test_blank_capture_is_none(self):
        """Test whitespace-only captures count as no value."""
        extractor = regex_extractor(re.compile(r"X:(\s*)"))
        assert extractor("X:   ") is None


class TestLineItems:
    """Test suite for billed line scanning."""

    def test_amount_formats(self):
        """Test plain, R$ and thousands-separated amounts."""
        items = extract_line_items(
            "Alinhamento 80,00\n"
            "Pastilha de freio R$ 1.234,56\n"
            "Sem valor aqui\n"
            "\n"
            "Revisão   completa    350,00\n"
        )

        assert [(i.description, i.total_value) for i in items] == [
            ("Alinhamento", Decimal("80.00")),
            ("Pastilha de freio", Decimal("1234.56")),
            ("Revisão completa", Decimal("350.00")),
        ]

    def test_requires_two_decimals(self):
        """Test lines ending in integers or dates are skipped."""
        items = extract_line_items("KM: 45.000\nData: 10/05/2024\nAno 2018")
        assert items == []

    def test_dotted_date_is_not_an_amount(self):
        """Test a dd.mm.yy date is not read as a thousands-grouped amount."""
        items = extract_line_items("Data: 12.05.23\nRevisao 10.000 km 350,00\n")

        assert [(i.description, i.total_value) for i in items] == [
            ("Revisao 10.000 km", Decimal("350.00")),
        ]

    def test_non_breaking_spaces(self):
        """Test non-breaking spaces are treated as spaces."""
        items = extract_line_items("Lavagem\u00a0R$\u00a040,00")
        assert items[0].description == "Lavagem"
        assert items[0].total_value == Decimal("40.00")


# ============================================================================
# Test ExtractorConfig
# ============================================================================


class TestExtractorConfig:
    """Test suite for ExtractorConfig dataclass."""

    def test_defaults(self):
        """Test default configuration values."""
        config = ExtractorConfig()
        assert config.extra_vendor_signatures == ()
        assert config.extract_line_items is True
        assert config.max_line_items == 0

    def test_blank_signature_rejected(self):
        """Test signatures must be non-empty strings."""
        with pytest.raises(ValueError, match="extra_vendor_signatures"):
            ExtractorConfig(extra_vendor_signatures=("  ",))

    def test_negative_max_line_items_rejected(self):
        """Test max_line_items must be non-negative."""
        with pytest.raises(ValueError, match="max_line_items"):
            ExtractorConfig(max_line_items=-1)


# ============================================================================
# Test Vendor Template
# ============================================================================


class TestVendorExtraction:
    """Test suite for the vendor preventive template."""

    def test_template_selected(self, extractor, vendor_pages):
        """Test vendor signature selects the vendor template."""
        record = extractor.extract(vendor_pages)
        assert record.source_type == "vendor_a_preventive"

    def test_vehicle_fields(self, extractor, vendor_pages):
        """Test every vehicle field is extracted."""
        vehicle = extractor.extract(vendor_pages).vehicle

        assert vehicle.placa == "ABC1234"
        assert vehicle.marca == "Fiat"
        assert vehicle.modelo == "Uno Mille"
        assert vehicle.ano == "2018"
        assert vehicle.km_atual == "45.000"
        assert vehicle.chassi == "9BWZZZ377VT004251"

    def test_order_metadata(self, extractor, vendor_pages):
        """Test order type, status and technician."""
        metadata = extractor.extract(vendor_pages).order_metadata

        assert metadata.order_type == "Preventiva"
        assert metadata.status == "Finalizada"
        assert metadata.technician == "João Silva"

    def test_totals(self, extractor, vendor_pages):
        """Test monetary totals are parsed from pt-BR notation."""
        totals = extractor.extract(vendor_pages).totals

        assert totals.parts_total == Decimal("195.90")
        assert totals.services_total == Decimal("120.00")
        assert totals.order_total == Decimal("315.90")

    def test_line_items(self, extractor, vendor_pages):
        """Test billed lines are collected in document order."""
        items = extractor.extract(vendor_pages).line_items

        assert items[0].description == "Troca de óleo"
        assert items[0].total_value == Decimal("150.00")
        assert items[1].description == "Filtro de ar"
        assert items[1].total_value == Decimal("45.90")
        # Totals lines also end in an amount and are kept as lines
        assert len(items) == 5

    def test_max_line_items(self, vendor_pages):
        """Test the line item limit."""
        extractor = FieldExtractor(ExtractorConfig(max_line_items=2))
        assert len(extractor.extract(vendor_pages).line_items) == 2

    def test_line_items_disabled(self, vendor_pages):
        """Test line item scanning can be switched off."""
        extractor = FieldExtractor(ExtractorConfig(extract_line_items=False))
        assert extractor.extract(vendor_pages).line_items == ()

    def test_raw_text_is_normalized(self, extractor, vendor_pages):
        """Test the record keeps single-line normalized text."""
        record = extractor.extract(vendor_pages)

        assert "\n" not in record.raw_text
        assert "  " not in record.raw_text
        assert record.raw_text.startswith("ORDEM BOSCH - Serviço Preventiva PLACA:")

    def test_plate_falls_back_to_vehicle_label(self, extractor):
        """Test the second plate pattern is used when PLACA: is absent."""
        record = extractor.extract_text("Ordem Bosch Veículo: QRS5T67 - Onix LT")

        assert record.vehicle.placa == "QRS5T67"
        assert record.vehicle.modelo == "Onix LT"

    def test_odometer_fallback_label(self, extractor):
        """Test Hodômetro is read when KM is absent."""
        record = extractor.extract_text("BOSCH Hodômetro: 98.765")
        assert record.vehicle.km_atual == "98.765"

    def test_extra_vendor_signature(self):
        """Test configured signatures select the vendor template."""
        extractor = FieldExtractor(
            ExtractorConfig(extra_vendor_signatures=("Auto Center Silva",))
        )
        record = extractor.extract_text("AUTO CENTER SILVA PLACA: DEF5678")

        assert record.source_type == "vendor_a_preventive"
        assert record.order_metadata is not None


# ============================================================================
# Test Generic Template
# ============================================================================


class TestGenericExtraction:
    """Test suite for the generic template."""

    def test_template_selected(self, extractor, generic_text):
        """Test the generic template handles documents without signatures."""
        record = extractor.extract_text(generic_text)

        assert record.source_type == "generic"
        assert record.order_metadata is None
        assert record.line_items == ()

    def test_vehicle_fields(self, extractor, generic_text):
        """Test multi-word labels are handled."""
        vehicle = extractor.extract_text(generic_text).vehicle

        assert vehicle.placa == "XYZ9876"
        assert vehicle.modelo == "Gol 1.6"
        assert vehicle.ano == "2015"
        assert vehicle.km_atual == "87.500"
        assert vehicle.chassi == "9BWAB45U0FT123456"
        assert vehicle.marca is None

    def test_order_total(self, extractor, generic_text):
        """Test only the order total is read."""
        totals = extractor.extract_text(generic_text).totals

        assert totals.order_total == Decimal("1250.00")
        assert totals.parts_total is None
        assert totals.services_total is None

    def test_short_labels(self, extractor):
        """Test the short Modelo:/Ano: labels."""
        vehicle = extractor.extract_text(
            "PLACA: JKL4321 Modelo: Civic EXL Ano: 2020 KM: 30.500"
        ).vehicle

        assert vehicle.modelo == "Civic EXL"
        assert vehicle.ano == "2020"
        assert vehicle.km_atual == "30.500"

    def test_model_keeps_label_word_without_colon(self, extractor):
        """Test a label word inside a value does not cut the value short."""
        vehicle = extractor.extract_text(
            "PLACA: ABC1234 Modelo: GOL 1.0 TOTAL FLEX Ano: 2018"
        ).vehicle

        assert vehicle.modelo == "GOL 1.0 TOTAL FLEX"
        assert vehicle.ano == "2018"

    def test_model_stops_before_multi_word_label(self, extractor):
        """Test the model stops before 'Quilometragem do Veículo:'."""
        vehicle = extractor.extract_text(
            "Modelo: Onix LT Quilometragem do Veículo: 30.000"
        ).vehicle

        assert vehicle.modelo == "Onix LT"
        assert vehicle.km_atual == "30.000"

    def test_plate_length_bounds(self, extractor):
        """Test the generic plate pattern needs 5 to 7 characters."""
        vehicle = extractor.extract_text("PLACA: AB12 Modelo: Ka").vehicle
        assert vehicle.placa is None

    def test_unmatched_fields_are_none(self, extractor):
        """Test text without labels yields an empty record."""
        record = extractor.extract_text("Recibo de pagamento")

        assert record.source_type == "generic"
        assert all(value is None for value in record.vehicle.to_dict().values())
        assert record.totals.order_total is None

    @pytest.mark.parametrize("pages", [[], [None], [""], ["", "   "]])
    def test_empty_input(self, extractor, pages):
        """Test empty pages produce an empty generic record."""
        record = extractor.extract(pages)

        assert record.source_type == "generic"
        assert record.raw_text == ""
        assert record.vehicle.placa is None

    def test_pages_are_joined(self, extractor):
        """Test labels split across pages are found."""
        record = extractor.extract(["PLACA: MNO1234", "ANO VEÍCULO: 2012"])

        assert record.vehicle.placa == "MNO1234"
        assert record.vehicle.ano == "2012"

    def test_string_input(self, extractor, generic_text):
        """Test a bare string is treated as a single page."""
        assert extractor.extract(generic_text).vehicle.placa == "XYZ9876"

    def test_deterministic(self, extractor, vendor_pages):
        """Test repeated extraction yields equal records."""
        assert extractor.extract(vendor_pages) == extractor.extract(vendor_pages)
