"""
Pytest configuration and fixtures.
"""

import pytest

from order_reconciler.models.data_structures import StructuredRecord, VehicleInfo


VENDOR_ORDER_PAGES = [
    "ORDEM BOSCH - Serviço Preventiva\n"
    "PLACA: ABC1234\n"
    "Marca: Fiat\n"
    "Modelo: Uno Mille\n"
    "Ano: 2018\n"
    "KM: 45.000\n"
    "CHASSI: 9BWZZZ377VT004251\n",
    "Situação: Finalizada\n"
    "Colaborador: João Silva\n"
    "Data: 10/05/2024\n"
    "Troca de óleo 150,00\n"
    "Filtro de ar R$ 45,90\n"
    "Peças: R$ 195,90\n"
    "Serviços: R$ 120,00\n"
    "Total da OS: R$ 315,90\n",
]

GENERIC_ORDER_TEXT = (
    "Ordem de Serviço 4521\n"
    "PLACA: XYZ9876\n"
    "MODELO VEÍCULO: Gol 1.6\n"
    "ANO VEÍCULO: 2015\n"
    "KM ATUAL: 87.500\n"
    "CHASSI: 9BWAB45U0FT123456\n"
    "Total da OS: R$ 1.250,00\n"
)

REFERENCE_COLUMNS = ["Placa", "Modelo", "Ano", "KM", "Chassi"]


@pytest.fixture
def vendor_pages():
    """Two-page vendor service order."""
    return list(VENDOR_ORDER_PAGES)


@pytest.fixture
def generic_text():
    """Single-page service order without vendor signatures."""
    return GENERIC_ORDER_TEXT


@pytest.fixture
def reference_columns():
    """Column names of the reference vehicle table."""
    return list(REFERENCE_COLUMNS)


@pytest.fixture
def exact_vehicle():
    """Extracted vehicle fields used across matcher tests."""
    return VehicleInfo(
        placa="ABC1234",
        modelo="Fiat Uno",
        ano="2018",
        km_atual="12000",
        chassi="CHASSI123",
    )


@pytest.fixture
def exact_record(exact_vehicle):
    """Structured record wrapping ``exact_vehicle``."""
    return StructuredRecord(source_type="generic", vehicle=exact_vehicle)


@pytest.fixture
def exact_row():
    """Reference row agreeing with ``exact_vehicle`` on every field."""
    return {
        "Placa": "ABC1234",
        "Modelo": "Fiat Uno",
        "Ano": 2018,
        "KM": 12000,
        "Chassi": "CHASSI123",
    }
