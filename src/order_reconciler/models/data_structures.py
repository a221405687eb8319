"""
Core data structures for the Order Reconciler.

Defines the records produced by document field extraction and the reports
produced by matching those records against a reference vehicle table. All
structures are immutable once built; ``to_dict`` renders them with the keys
persisted by callers.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Final, List, Mapping, Optional, Tuple


# Vehicle field keys as they appear in records and reports
FIELD_PLATE: Final[str] = "placa"
FIELD_BRAND: Final[str] = "marca"
FIELD_MODEL: Final[str] = "modelo"
FIELD_YEAR: Final[str] = "ano"
FIELD_ODOMETER: Final[str] = "km_atual"
FIELD_CHASSIS: Final[str] = "chassi"

VEHICLE_FIELDS: Final[Tuple[str, ...]] = (
    FIELD_PLATE,
    FIELD_BRAND,
    FIELD_MODEL,
    FIELD_YEAR,
    FIELD_ODOMETER,
    FIELD_CHASSIS,
)

# Fields compared against the reference table, in evaluation order
MATCH_FIELDS: Final[Tuple[str, ...]] = (
    FIELD_PLATE,
    FIELD_MODEL,
    FIELD_YEAR,
    FIELD_ODOMETER,
    FIELD_CHASSIS,
)

# English logical names accepted in explicit column mappings
FIELD_ALIASES: Final[Dict[str, str]] = {
    "plate": FIELD_PLATE,
    "brand": FIELD_BRAND,
    "model": FIELD_MODEL,
    "year": FIELD_YEAR,
    "odometer": FIELD_ODOMETER,
    "chassis": FIELD_CHASSIS,
}

# Order metadata keys (vendor templates only)
META_ORDER_TYPE: Final[str] = "order_type"
META_STATUS: Final[str] = "status"
META_TECHNICIAN: Final[str] = "technician"

# Totals keys
TOTAL_PARTS: Final[str] = "parts_total"
TOTAL_SERVICES: Final[str] = "services_total"
TOTAL_ORDER: Final[str] = "order_total"


def resolve_field_key(key: str) -> Optional[str]:
    """Map a report key or English alias to the canonical field key."""
    if not key:
        return None
    lowered = key.strip().lower()
    if lowered in VEHICLE_FIELDS:
        return lowered
    return FIELD_ALIASES.get(lowered)


@dataclass(frozen=True)
class VehicleInfo:
    """
    Vehicle fields pulled from a service-order document.

    Every value is either a trimmed, non-empty string or None. An empty
    string never appears, so a blank table cell cannot "match" a missing
    document field.
    """

    placa: Optional[str] = None
    marca: Optional[str] = None
    modelo: Optional[str] = None
    ano: Optional[str] = None
    km_atual: Optional[str] = None
    chassi: Optional[str] = None

    def get(self, key: str) -> Optional[str]:
        """Return the value for a field key or alias, None if unknown."""
        canonical = resolve_field_key(key)
        if canonical is None:
            return None
        return getattr(self, canonical)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {key: getattr(self, key) for key in VEHICLE_FIELDS}


@dataclass(frozen=True)
class OrderMetadata:
    """Order-level attributes found on vendor service orders."""

    order_type: Optional[str] = None
    status: Optional[str] = None
    technician: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            META_ORDER_TYPE: self.order_type,
            META_STATUS: self.status,
            META_TECHNICIAN: self.technician,
        }


@dataclass(frozen=True)
class LineItem:
    """A single billed line: description plus its non-negative total."""

    description: str
    total_value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "total_value": self.total_value}


@dataclass(frozen=True)
class OrderTotals:
    """Monetary totals; a value that could not be parsed stays None."""

    parts_total: Optional[Decimal] = None
    services_total: Optional[Decimal] = None
    order_total: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Optional[Decimal]]:
        return {
            TOTAL_PARTS: self.parts_total,
            TOTAL_SERVICES: self.services_total,
            TOTAL_ORDER: self.order_total,
        }


@dataclass(frozen=True)
class StructuredRecord:
    """
    Output of document field extraction.

    Attributes:
        source_type: Tag of the extraction template that produced the record.
        vehicle: Vehicle fields (always present, possibly all None).
        order_metadata: Order type, status and technician. None unless a
            vendor template produced the record.
        line_items: Billed lines in document order, possibly empty.
        totals: Parts, services and order totals.
        raw_text: Normalized document text kept for audit and debugging.
    """

    source_type: str
    vehicle: VehicleInfo = field(default_factory=VehicleInfo)
    order_metadata: Optional[OrderMetadata] = None
    line_items: Tuple[LineItem, ...] = ()
    totals: OrderTotals = field(default_factory=OrderTotals)
    raw_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_type": self.source_type,
            "vehicle": self.vehicle.to_dict(),
            "order_metadata": (
                self.order_metadata.to_dict() if self.order_metadata else None
            ),
            "line_items": [item.to_dict() for item in self.line_items],
            "totals": self.totals.to_dict(),
            "raw_text": self.raw_text,
        }


@dataclass(frozen=True)
class FieldScore:
    """Per-field verdict for one reference row."""

    score: float
    max: float
    matched: bool

    def __getitem__(self, key: str) -> Any:
        return getattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "max": self.max, "matched": self.matched}


@dataclass(frozen=True)
class FieldDifference:
    """A field where the table and the document disagree (original values)."""

    field: str
    excel_value: Any
    pdf_value: Any

    def __getitem__(self, key: str) -> Any:
        return getattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "excel_value": self.excel_value,
            "pdf_value": self.pdf_value,
        }


@dataclass(frozen=True)
class RowScore:
    """Scoring outcome for a single reference row."""

    row_index: int
    total_score: float
    field_scores: Mapping[str, FieldScore]
    mismatches: Tuple[FieldDifference, ...]
    row: Mapping[str, Any]


@dataclass(frozen=True)
class MatchReport:
    """
    Summary of matching a structured record against a reference table.

    Attributes:
        total_rows: Number of candidate rows supplied.
        best_row_index: 0-based index of the best row, None if no rows.
        best_row_data: Copy of the best row, None if no rows.
        match_score: Total score of the best row, 0 if no rows.
        comparison_note: Human-readable summary line.
        sample_differences: First mismatches of the best row.
        field_scores: Per-field scores of the best row, empty if no rows.
    """

    total_rows: int
    best_row_index: Optional[int]
    best_row_data: Optional[Dict[str, Any]]
    match_score: float
    comparison_note: str
    sample_differences: Tuple[FieldDifference, ...] = ()
    field_scores: Mapping[str, FieldScore] = field(default_factory=dict)

    @property
    def best_match_row_index(self) -> Optional[int]:
        return self.best_row_index

    @property
    def total_excel_rows(self) -> int:
        return self.total_rows

    @property
    def has_match(self) -> bool:
        return self.best_row_index is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_excel_rows": self.total_rows,
            "best_match_row_index": self.best_row_index,
            "best_row_data": self.best_row_data,
            "match_score": self.match_score,
            "comparison_note": self.comparison_note,
            "sample_differences": [d.to_dict() for d in self.sample_differences],
            "field_scores": {
                key: score.to_dict() for key, score in self.field_scores.items()
            },
        }


@dataclass(frozen=True)
class ReferenceTable:
    """Rows of a reference spreadsheet plus its ordered column names."""

    columns: List[str]
    rows: List[Dict[str, Any]]
    source_file: Optional[str] = None
    sheet_name: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)
