"""
Test suite for template_selector.py module.

Location: tests/unit/processing/test_template_selector.py
"""

import pytest

from order_reconciler.processing.extraction_templates import (
    GENERIC,
    VENDOR_A_PREVENTIVE,
    ExtractionTemplate,
    compile_chain,
)
from order_reconciler.processing.template_selector import TemplateSelector


@pytest.fixture
def fleet_template():
    """A second vendor template used for registration tests."""
    return ExtractionTemplate(
        tag="fleet_partner",
        signatures=("frota parceira",),
        vehicle_fields={"placa": compile_chain(r"Placa\s*=\s*([A-Z0-9]+)")},
    )


class TestSelection:
    """Test suite for signature-based selection."""

    @pytest.mark.parametrize(
        "text",
        [
            "ORDEM BOSCH Nº 123",
            "Ordem Bosch - revisão",
            "Manutenção PREVENTIVA programada",
        ],
    )
    def test_vendor_signatures(self, text):
        """Test each vendor signature selects the vendor template."""
        assert TemplateSelector().select(text).tag == "vendor_a_preventive"

    def test_generic_fallback(self):
        """Test text without signatures falls back to the generic template."""
        selected = TemplateSelector().select("Ordem de Serviço Corretiva")
        assert selected is GENERIC

    def test_empty_text(self):
        """Test empty text selects the fallback."""
        assert TemplateSelector().select("") is GENERIC

    def test_catch_all_split_from_vendors(self):
        """Test catch-all templates are not kept as vendor templates."""
        selector = TemplateSelector([VENDOR_A_PREVENTIVE, GENERIC])
        assert selector.templates == [VENDOR_A_PREVENTIVE]
        assert selector.fallback is GENERIC


class TestRegistration:
    """Test suite for template registration."""

    def test_register_appends(self, fleet_template):
        """Test registered templates are consulted after existing ones."""
        selector = TemplateSelector()
        selector.register(fleet_template)

        assert selector.select("Frota Parceira OS 9").tag == "fleet_partner"
        assert selector.select("frota parceira bosch").tag == "vendor_a_preventive"

    def test_register_with_priority(self, fleet_template):
        """Test a template can be registered ahead of existing ones."""
        selector = TemplateSelector()
        selector.register(fleet_template, position=0)

        assert selector.select("frota parceira bosch").tag == "fleet_partner"

    def test_register_catch_all_rejected(self):
        """Test templates without signatures cannot be registered."""
        with pytest.raises(ValueError, match="no signatures"):
            TemplateSelector().register(GENERIC)

    def test_register_duplicate_rejected(self):
        """Test tags must be unique."""
        with pytest.raises(ValueError, match="already registered"):
            TemplateSelector().register(VENDOR_A_PREVENTIVE)

    def test_fallback_must_be_catch_all(self):
        """Test a vendor template cannot serve as fallback."""
        with pytest.raises(ValueError, match="must not define signatures"):
            TemplateSelector(fallback=VENDOR_A_PREVENTIVE)

    def test_with_signatures(self):
        """Test extra signatures are lowercased and deduplicated."""
        template = VENDOR_A_PREVENTIVE.with_signatures([" Auto Center ", "bosch"])

        assert template.signatures == ("bosch", "ordem bosch", "preventiva", "auto center")
        assert VENDOR_A_PREVENTIVE.signatures == ("bosch", "ordem bosch", "preventiva")
